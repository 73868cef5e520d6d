"""Rack and chain models mirrored from the remote Live set."""

from pydantic import BaseModel, ConfigDict, Field


class RackDevice(BaseModel):
    """A rack device (Instrument/Audio/Drum Rack) that holds chains."""

    model_config = ConfigDict(frozen=True)

    track_id: int = Field(ge=0, description="Track index in the Live set")
    device_id: int = Field(ge=0, description="Device index on the track")
    track_name: str = Field(default="", description="Track display name")
    device_name: str = Field(default="", description="Device display name")

    @property
    def key(self) -> tuple[int, int]:
        """(track_id, device_id) pair identifying the rack on the peer."""
        return (self.track_id, self.device_id)

    def matches(self, track_id: object, device_id: object) -> bool:
        """Check whether ids taken from an OSC message address this rack."""
        return track_id == self.track_id and device_id == self.device_id

    def label(self) -> str:
        """Human-readable "track / device" label."""
        track = self.track_name or f"Track {self.track_id}"
        device = self.device_name or f"Device {self.device_id}"
        return f"{track} / {device}"


class Chain(BaseModel):
    """One selectable chain inside a rack."""

    index: int = Field(ge=0, description="Chain index assigned by the peer")
    name: str = Field(default="", description="Chain name")
    color_index: int = Field(default=0, description="Live color palette index")
    is_active: bool = Field(default=False, description="Whether this chain is the selected one")


class ChainState(BaseModel):
    """Snapshot of the chain selector's view of a rack."""

    chains: list[Chain] = Field(default_factory=list)
    active_chain_index: int = Field(default=-1, ge=-1, description="-1 when nothing is selected")
    rack: RackDevice | None = None

    @property
    def active_chain(self) -> Chain | None:
        """The active chain, if any."""
        if 0 <= self.active_chain_index < len(self.chains):
            return self.chains[self.active_chain_index]
        return None

    @classmethod
    def empty(cls) -> "ChainState":
        """State with no rack selected."""
        return cls()
