"""Application configuration model."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from chainselector.model_manager.persistence import PydanticPersistence

from .enums import SwitchStrategyName
from .midi import MidiPadConfig

logger = logging.getLogger(__name__)

# Receive port used by older releases; single-client only
LEGACY_RECEIVE_PORT = 11001
DEFAULT_RECEIVE_PORT = 11002


def default_config_dir() -> Path:
    """Directory holding config.json and logs/."""
    return Path.home() / ".chainselector"


def default_config_path() -> Path:
    """Default config file location (~/.chainselector/config.json)."""
    return default_config_dir() / "config.json"


class AppConfig(BaseModel):
    """Application configuration and last session state."""

    # OSC connection
    osc_send_host: str = Field(default="127.0.0.1", description="Host running AbletonOSC")
    osc_send_port: int = Field(default=11000, ge=1, le=65535, description="AbletonOSC listen port")
    osc_receive_port: int = Field(
        default=DEFAULT_RECEIVE_PORT, ge=1, le=65535, description="Local port for replies and notifications"
    )

    # Last session
    selected_track_id: int | None = Field(default=None, ge=0, description="Track of the last selected rack")
    selected_device_id: int | None = Field(default=None, ge=0, description="Device of the last selected rack")
    last_active_chain_index: int = Field(default=0, ge=-1, description="Chain restored on reconnect")

    # MIDI
    selected_midi_device: str | None = Field(default=None, description="MIDI input port name")
    midi_pads: MidiPadConfig = Field(default_factory=MidiPadConfig, description="Learned navigation pads")
    midi_poll_interval: float = Field(
        default=2.0, gt=0, description="How often to check for MIDI device changes (seconds)"
    )

    # Chain switching
    switch_strategy: SwitchStrategyName = Field(
        default=SwitchStrategyName.DEVICES,
        description="'devices' enables only the active chain's devices, 'solo' solos it",
    )

    @property
    def has_saved_rack(self) -> bool:
        """Check if a rack selection was saved."""
        return self.selected_track_id is not None and self.selected_device_id is not None

    def migrate(self) -> bool:
        """
        Upgrade values written by older releases.

        Returns:
            True if anything changed
        """
        if self.osc_receive_port == LEGACY_RECEIVE_PORT:
            logger.info(f"Migrating receive port {LEGACY_RECEIVE_PORT} -> {DEFAULT_RECEIVE_PORT}")
            self.osc_receive_port = DEFAULT_RECEIVE_PORT
            return True
        return False

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file or return defaults.

        Args:
            path: Path to config file. If None, uses ~/.chainselector/config.json

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        path = path or default_config_path()
        config = PydanticPersistence.load_json_or_default(path, cls)
        if config.migrate() and path.exists():
            config.save(path)
        return config

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        PydanticPersistence.save_json(self, path or default_config_path())
