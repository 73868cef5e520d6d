"""Data models for the chain selector."""

from .chain import Chain, ChainState, RackDevice
from .config import AppConfig, default_config_dir, default_config_path
from .connection import ConnectionState
from .enums import ConnectionStatus, LearnTarget, MidiMessageType, SwitchStrategyName
from .midi import MidiMessage, MidiPadConfig

__all__ = [
    "AppConfig",
    # Models
    "Chain",
    "ChainState",
    # Enums
    "ConnectionState",
    "ConnectionStatus",
    "LearnTarget",
    "MidiMessage",
    "MidiMessageType",
    "MidiPadConfig",
    "RackDevice",
    "SwitchStrategyName",
    "default_config_dir",
    "default_config_path",
]
