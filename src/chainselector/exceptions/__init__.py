"""
Custom exception hierarchy for chainselector.

## Exception Hierarchy

```
ChainSelectorError (base)
├── OscError
│   ├── OscTimeoutError
│   └── OscNotConnectedError
└── ConfigurationError
    ├── ConfigFileInvalidError
    └── ConfigValidationError
```

All custom exceptions inherit from `ChainSelectorError`, which provides
`user_message`, `technical_message`, `recoverable` and `recovery_hint`.

Transport errors never bring the process down: callers of
`OscClient.request` log them and fall back to an empty, safe state.
"""

from .base import ChainSelectorError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .handlers import (
    ErrorCollector,
    collect_errors,
    format_error_for_display,
    wrap_pydantic_error,
)
from .transport import OscError, OscNotConnectedError, OscTimeoutError

__all__ = [
    # Base
    "ChainSelectorError",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Handlers
    "ErrorCollector",
    "collect_errors",
    "format_error_for_display",
    "wrap_pydantic_error",
    # Transport
    "OscError",
    "OscNotConnectedError",
    "OscTimeoutError",
]
