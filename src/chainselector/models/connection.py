"""Combined connection snapshot for status displays."""

from pydantic import BaseModel, Field

from .enums import ConnectionStatus


class ConnectionState(BaseModel):
    """OSC peer and MIDI port status at one point in time."""

    osc: ConnectionStatus = ConnectionStatus.DISCONNECTED
    midi: ConnectionStatus = ConnectionStatus.DISCONNECTED
    midi_device_name: str | None = Field(default=None, description="Selected MIDI input port")
