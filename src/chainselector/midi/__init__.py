"""MIDI input and pad navigation."""

from .input_service import MidiInputService, MidiMessageHandler
from .navigator import MidiChainNavigator

__all__ = ["MidiChainNavigator", "MidiInputService", "MidiMessageHandler"]
