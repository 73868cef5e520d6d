"""Rack discovery, chain state management and switching strategies."""

from .discovery import ChainDiscovery
from .manager import ChainManager
from .strategies import ChainSwitchStrategy, DeviceEnableStrategy, SoloStrategy, strategy_for

__all__ = [
    "ChainDiscovery",
    "ChainManager",
    "ChainSwitchStrategy",
    "DeviceEnableStrategy",
    "SoloStrategy",
    "strategy_for",
]
