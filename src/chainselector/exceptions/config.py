"""Errors raised while reading or validating ~/.chainselector/config.json."""

from typing import Any, Optional

from .base import ChainSelectorError

# Extra hint lines keyed by a word that appears in the failing field name
_FIELD_HINTS = {
    "port": "Ports must be between 1 and 65535 (AbletonOSC defaults: send 11000, receive 11002)",
    "midi": "Run 'chainselector midi list' to see valid MIDI devices",
    "strategy": "Valid strategies: devices, solo",
}


class ConfigurationError(ChainSelectorError):
    """The config file could not be used."""
    pass


class ConfigFileInvalidError(ConfigurationError):
    """The config file is empty, unreadable or not JSON."""

    def __init__(self, file_path: str, parse_error: str):
        """
        Args:
            file_path: The offending file
            parse_error: What the JSON parser (or the OS) reported
        """
        lowered = parse_error.lower()
        if "empty" in lowered:
            user_message = "Configuration file is empty"
            hint = f"Delete {file_path} to start from defaults"
        elif "trailing comma" in lowered:
            user_message = "Configuration file has a trailing comma"
            hint = f"Remove the comma after the last entry in {file_path}"
        else:
            user_message = "Configuration file is not valid JSON"
            hint = (
                f"Fix or delete {file_path}; chainselector recreates it with defaults.\n"
                "Look for trailing commas, unquoted strings and unclosed braces."
            )

        super().__init__(
            user_message=user_message,
            technical_message=f"Cannot parse {file_path}: {parse_error}",
            recoverable=True,
            recovery_hint=hint,
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """A config value is out of range or has the wrong type."""

    def __init__(self, field: str, value: Any, error_msg: str, file_path: Optional[str] = None):
        """
        Args:
            field: Dotted field name (e.g. "midi_pads.prev_note")
            value: The rejected value
            error_msg: Validator message
            file_path: Config file the value came from, if any
        """
        hint_lines = [f"Change '{field}' with 'chainselector config set {field} VALUE'"]
        if file_path:
            hint_lines.append(f"Config file: {file_path}")
        hint_lines.extend(text for key, text in _FIELD_HINTS.items() if key in field.lower())

        super().__init__(
            user_message=f"Invalid configuration value for '{field}': {error_msg}",
            technical_message=f"{field}={value!r} rejected: {error_msg}",
            recoverable=True,
            recovery_hint="\n".join(hint_lines),
        )
        self.field = field
        self.value = value
        self.file_path = file_path
