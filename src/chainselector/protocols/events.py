"""Domain events for observer pattern."""

from enum import Enum


class LearnEvent(Enum):
    """Events from the MIDI learn workflow."""

    STARTED = "started"  # Learn mode armed for a target
    STOPPED = "stopped"  # Learn mode disarmed without capturing
    COMPLETE = "complete"  # A note was captured and assigned
