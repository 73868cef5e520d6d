"""
Helpers for turning exceptions into something the user can act on.

- ``wrap_pydantic_error``: ValidationError from a config file -> ConfigurationError
- ``format_error_for_display``: (message, hint) pair for the CLI
- ``collect_errors``: keep going through a batch and report failures at the end
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from pydantic import ValidationError

from .base import ChainSelectorError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError

_JSON_MARKER = "Invalid JSON:"


def _field_name(detail: dict) -> str:
    return ".".join(str(part) for part in detail.get("loc", ("unknown",)))


def wrap_pydantic_error(error: Exception, file_path: str) -> ConfigurationError:
    """
    Map a Pydantic failure on ``file_path`` to the matching config error.

    Syntax errors become ConfigFileInvalidError; field errors become a
    ConfigValidationError naming the field (or listing all of them).
    """
    text = str(error)

    if _JSON_MARKER in text or "json_invalid" in text:
        # "Invalid JSON: <parser message> [type=json_invalid, ..."
        parse_error = text.split(_JSON_MARKER, 1)[-1].split("[type=")[0].strip()
        return ConfigFileInvalidError(file_path, parse_error)

    details = error.errors() if isinstance(error, ValidationError) else []

    if len(details) == 1:
        detail = details[0]
        return ConfigValidationError(
            field=_field_name(detail),
            value=detail.get("input"),
            error_msg=detail.get("msg", "validation failed"),
            file_path=file_path,
        )

    if details:
        lines = [f"  - {_field_name(d)}: {d.get('msg', 'validation failed')}" for d in details]
        return ConfigValidationError(
            field="multiple fields",
            value=None,
            error_msg=f"{len(details)} validation errors:\n" + "\n".join(lines),
            file_path=file_path,
        )

    return ConfigValidationError(field="unknown", value=None, error_msg=text, file_path=file_path)


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """Return (message, recovery hint or None) for any exception."""
    if isinstance(error, ChainSelectorError):
        return error.user_message, error.recovery_hint
    return f"{type(error).__name__}: {error}", None


class ErrorCollector:
    """
    Records failures of individual steps in a batch without stopping it.

    Example:
        ```python
        collector = collect_errors("scan tracks")
        for track_id in range(count):
            with collector.try_operation(f"track {track_id}"):
                await scan(track_id)
        if collector.has_errors:
            logger.warning(collector.get_summary())
        ```
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.errors: list[tuple[str, Exception]] = []
        self.success_count = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @contextmanager
    def try_operation(self, sub_operation: str) -> Iterator[None]:
        """Run one step; an Exception is recorded and suppressed."""
        # BaseException (cancellation, KeyboardInterrupt) is not caught
        try:
            yield
        except Exception as e:
            self.errors.append((sub_operation, e))
        else:
            self.success_count += 1

    def get_summary(self) -> str:
        if not self.errors:
            return f"All operations completed successfully ({self.success_count} total)"

        total = self.error_count + self.success_count
        lines = [f"Failed {self.error_count} of {total} operations ({self.operation}):"]
        for sub_operation, error in self.errors:
            reason = error.user_message if isinstance(error, ChainSelectorError) else str(error)
            lines.append(f"  - {sub_operation}: {reason}")
        return "\n".join(lines)


def collect_errors(operation: str) -> ErrorCollector:
    return ErrorCollector(operation)
