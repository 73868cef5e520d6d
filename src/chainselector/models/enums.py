"""Enumerations for the chain selector."""

from enum import Enum


class ConnectionStatus(str, Enum):
    """Liveness of a connection (OSC peer or MIDI port)."""

    DISCONNECTED = "disconnected"  # No socket/port, or the peer stopped answering
    CONNECTING = "connecting"  # Socket open, waiting for the first liveness reply
    CONNECTED = "connected"  # Peer answered recently


class LearnTarget(str, Enum):
    """Navigation direction a learned MIDI pad is assigned to."""

    PREV = "prev"
    NEXT = "next"


class SwitchStrategyName(str, Enum):
    """How a chain is made the active one on the remote rack."""

    DEVICES = "devices"  # Enable the chain's devices, disable the others
    SOLO = "solo"  # Solo the chain, unsolo the others


class MidiMessageType(str, Enum):
    """MIDI message kinds the navigator receives."""

    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"
    CC = "cc"
