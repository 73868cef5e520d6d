"""MIDI models: learned pad mapping and parsed input messages."""

from dataclasses import dataclass
from typing import Optional

import mido
from pydantic import BaseModel, Field

from .enums import LearnTarget, MidiMessageType


class MidiPadConfig(BaseModel):
    """Notes/channels assigned to previous and next chain navigation."""

    prev_note: int | None = Field(default=None, ge=0, le=127, description="Note for previous chain")
    next_note: int | None = Field(default=None, ge=0, le=127, description="Note for next chain")
    prev_channel: int = Field(default=1, ge=1, le=16, description="MIDI channel (1-16) for previous")
    next_channel: int = Field(default=1, ge=1, le=16, description="MIDI channel (1-16) for next")

    def assign(self, target: LearnTarget, note: int, channel: int) -> None:
        """Assign a note/channel pair to a navigation direction."""
        if target == LearnTarget.PREV:
            self.prev_note = note
            self.prev_channel = channel
        else:
            self.next_note = note
            self.next_channel = channel

    def matches(self, target: LearnTarget, note: int, channel: int) -> bool:
        """Check if a note/channel pair triggers the given direction."""
        if target == LearnTarget.PREV:
            return self.prev_note is not None and note == self.prev_note and channel == self.prev_channel
        return self.next_note is not None and note == self.next_note and channel == self.next_channel


@dataclass(frozen=True)
class MidiMessage:
    """A note or CC message from the input port. Channel is 1-based."""

    type: MidiMessageType
    note: int
    velocity: int
    channel: int

    @classmethod
    def from_mido(cls, msg: mido.Message) -> Optional["MidiMessage"]:
        """
        Convert a mido message, or return None for types we don't handle.

        Note on with velocity 0 is treated as note off. For control change
        messages, `note` carries the controller number and `velocity` its value.
        """
        if msg.type == "note_on":
            kind = MidiMessageType.NOTE_ON if msg.velocity > 0 else MidiMessageType.NOTE_OFF
            return cls(kind, msg.note, msg.velocity, msg.channel + 1)
        if msg.type == "note_off":
            return cls(MidiMessageType.NOTE_OFF, msg.note, 0, msg.channel + 1)
        if msg.type == "control_change":
            return cls(MidiMessageType.CC, msg.control, msg.value, msg.channel + 1)
        return None
