"""Chainselector: switch Ableton Live rack chains over OSC and MIDI pads."""

__version__ = "0.1.0"

# Core services
from .chain import ChainDiscovery, ChainManager
from .midi import MidiChainNavigator, MidiInputService
from .orchestration import Orchestrator
from .osc import OscClient, OscMessageRouter

__all__ = [
    "ChainDiscovery",
    "ChainManager",
    "MidiChainNavigator",
    "MidiInputService",
    "Orchestrator",
    "OscClient",
    "OscMessageRouter",
]
