"""Chain switching strategies.

A strategy decides what "active chain" means on the remote rack. Both
strategies keep exactly one chain audible; they differ in how.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Protocol

from chainselector.models import RackDevice, SwitchStrategyName

logger = logging.getLogger(__name__)

DEVICES_ENABLED_ADDRESS = "/live/chain/set/devices_enabled"
SOLO_ADDRESS = "/live/chain/set/solo"
SOLO_FLAGS_ADDRESS = "/live/device/get/chains/solo"


class OscSender(Protocol):
    """Anything that can fire an OSC message."""

    def send(self, address: str, *args) -> None:
        ...


class ChainSwitchStrategy(ABC):
    """
    Turns chains on and off on the remote rack.

    Attributes:
        name: Config value selecting this strategy
        flags_address: Query returning one per-chain flag that marks the
            active chain, or None when the peer offers no such query
    """

    name: SwitchStrategyName
    flags_address: Optional[str] = None

    @abstractmethod
    def activate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        """Make a chain the audible one."""
        pass

    @abstractmethod
    def deactivate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        """Silence a previously active chain."""
        pass

    @abstractmethod
    def initialize(self, osc: OscSender, rack: RackDevice, chain_count: int, active_index: int) -> None:
        """
        Put a freshly loaded rack into the one-active state.

        Args:
            osc: Sender for the switching messages
            rack: The rack that was loaded
            chain_count: Number of chains on the rack
            active_index: Chain to leave active (-1 silences all)
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DeviceEnableStrategy(ChainSwitchStrategy):
    """
    Enable the active chain's devices and disable everyone else's.

    Disabled devices use no CPU, which is the point of this strategy.
    """

    name = SwitchStrategyName.DEVICES

    def activate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        osc.send(DEVICES_ENABLED_ADDRESS, rack.track_id, rack.device_id, index, 1)

    def deactivate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        osc.send(DEVICES_ENABLED_ADDRESS, rack.track_id, rack.device_id, index, 0)

    def initialize(self, osc: OscSender, rack: RackDevice, chain_count: int, active_index: int) -> None:
        # Also clear solo left over from the solo strategy
        for i in range(chain_count):
            osc.send(DEVICES_ENABLED_ADDRESS, rack.track_id, rack.device_id, i, 1 if i == active_index else 0)
            osc.send(SOLO_ADDRESS, rack.track_id, rack.device_id, i, 0)


class SoloStrategy(ChainSwitchStrategy):
    """Solo the active chain; every chain keeps running."""

    name = SwitchStrategyName.SOLO
    flags_address = SOLO_FLAGS_ADDRESS

    def activate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        osc.send(SOLO_ADDRESS, rack.track_id, rack.device_id, index, 1)

    def deactivate(self, osc: OscSender, rack: RackDevice, index: int) -> None:
        osc.send(SOLO_ADDRESS, rack.track_id, rack.device_id, index, 0)

    def initialize(self, osc: OscSender, rack: RackDevice, chain_count: int, active_index: int) -> None:
        for i in range(chain_count):
            osc.send(SOLO_ADDRESS, rack.track_id, rack.device_id, i, 1 if i == active_index else 0)


_STRATEGIES: dict[SwitchStrategyName, type[ChainSwitchStrategy]] = {
    SwitchStrategyName.DEVICES: DeviceEnableStrategy,
    SwitchStrategyName.SOLO: SoloStrategy,
}


def strategy_for(name: SwitchStrategyName | str) -> ChainSwitchStrategy:
    """
    Create the strategy configured by name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        key = SwitchStrategyName(name)
    except ValueError:
        valid = ", ".join(s.value for s in SwitchStrategyName)
        raise ValueError(f"Unknown switch strategy '{name}' (expected one of: {valid})") from None

    logger.debug(f"Using {key.value} chain switching strategy")
    return _STRATEGIES[key]()
