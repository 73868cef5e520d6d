"""Reading and writing Pydantic models as JSON files.

The only file chainselector persists is ~/.chainselector/config.json.
Parse and validation failures surface as ConfigurationError subclasses
carrying a recovery hint; a missing file is the one case that falls back
to defaults.
"""

import logging
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from chainselector.exceptions import (
    ConfigFileInvalidError,
    ConfigurationError,
    wrap_pydantic_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _sibling(path: Path, extra_suffix: str) -> Path:
    """config.json -> config.json.bak / config.json.tmp"""
    return path.with_suffix(path.suffix + extra_suffix)


class PydanticPersistence:
    """
    Load/save helpers; all static, no state.

    Writes keep the previous file as ``<name>.bak`` and go through
    ``<name>.tmp`` so a crash mid-write never truncates the config.
    """

    @staticmethod
    def load_json(path: Path, model_type: type[T]) -> T:
        """
        Parse ``path`` into ``model_type``.

        Raises:
            FileNotFoundError: No file at ``path``
            ConfigFileInvalidError: Empty, unreadable or malformed file
            ConfigValidationError: Well-formed JSON with a rejected value
        """
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        name = model_type.__name__
        try:
            text = path.read_text(encoding="utf-8")
            if not text.strip():
                raise ConfigFileInvalidError(str(path), "File is empty")
            model = model_type.model_validate_json(text)
        except ConfigurationError:
            raise
        except ValidationError as e:
            logger.error(f"{path} does not describe a valid {name}: {e}")
            raise wrap_pydantic_error(e, str(path)) from e
        except OSError as e:
            logger.error(f"Reading {path} failed: {e}")
            raise ConfigFileInvalidError(str(path), f"Unreadable file: {e}") from e

        logger.debug(f"{name} read from {path}")
        return model

    @staticmethod
    def save_json(data: BaseModel, path: Path, indent: int = 2, backup: bool = True) -> None:
        """
        Write ``data`` to ``path``, creating parent directories.

        Args:
            backup: Keep the file being replaced as ``<name>.bak``

        Raises:
            OSError: The file could not be written
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        if backup and path.exists():
            shutil.copy2(path, _sibling(path, ".bak"))

        staging = _sibling(path, ".tmp")
        try:
            staging.write_text(data.model_dump_json(indent=indent), encoding="utf-8")
            staging.replace(path)
        except OSError as e:
            logger.error(f"Writing {type(data).__name__} to {path} failed: {e}")
            raise
        finally:
            staging.unlink(missing_ok=True)

        logger.debug(f"{type(data).__name__} written to {path}")

    @staticmethod
    def load_json_or_default(
        path: Path, model_type: type[T], default_factory: Callable[[], T] | None = None
    ) -> T:
        """Like ``load_json`` but a missing file yields a default instance."""
        try:
            return PydanticPersistence.load_json(path, model_type)
        except FileNotFoundError:
            logger.info(f"No {model_type.__name__} file at {path}; using defaults")
            return default_factory() if default_factory else model_type()
