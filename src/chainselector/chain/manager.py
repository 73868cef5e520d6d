"""Chain state for the selected rack, kept in sync with the peer."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from chainselector.model_manager import ObserverManager, Unsubscribe
from chainselector.models import Chain, ChainState, RackDevice
from chainselector.osc import OscMessage
from chainselector.protocols import ChainStateObserver

from .strategies import ChainSwitchStrategy, DeviceEnableStrategy

if TYPE_CHECKING:
    from chainselector.osc import OscClient, OscMessageRouter

logger = logging.getLogger(__name__)

CHAIN_NAMES_ADDRESS = "/live/device/get/chains/name"
CHAIN_COLORS_ADDRESS = "/live/device/get/chains/color_index"
SELECTED_CHAIN_ADDRESS = "/live/device/get/selected_chain"
SET_SELECTED_CHAIN_ADDRESS = "/live/device/set/selected_chain"
CHAINS_CHANGED_ADDRESS = "/live/device/get/chains"

START_LISTEN_CHAINS = "/live/device/start_listen/chains"
START_LISTEN_SELECTED = "/live/device/start_listen/selected_chain"
STOP_LISTEN_CHAINS = "/live/device/stop_listen/chains"
STOP_LISTEN_SELECTED = "/live/device/stop_listen/selected_chain"


def _values(message: OscMessage, skip: int = 2) -> list[Any]:
    """Per-chain values of a device reply (args after track_id, device_id)."""
    return list(message.args[skip:])


class ChainManager:
    """
    Owns the chain list and active chain of one rack.

    Local selections are pushed to the peer through the switching strategy;
    peer notifications (chain list changed, selected chain changed) are
    pulled back in. Every observable change notifies chain state observers
    with a full snapshot.

    Threading:
        Event loop only. select_chain() never awaits, so its sends go out
        back-to-back.
    """

    def __init__(
        self,
        osc: "OscClient",
        router: "OscMessageRouter",
        strategy: Optional[ChainSwitchStrategy] = None,
    ):
        self._osc = osc
        self._router = router
        self._strategy = strategy or DeviceEnableStrategy()

        self._rack: Optional[RackDevice] = None
        self._chains: list[Chain] = []
        self._active_index = -1

        self._subscriptions: list[Unsubscribe] = []
        self._tasks: set[asyncio.Task] = set()
        self._observers = ObserverManager[ChainStateObserver](observer_type_name="chain state")

    # =================================================================
    # Queries
    # =================================================================

    @property
    def strategy(self) -> ChainSwitchStrategy:
        return self._strategy

    @property
    def rack(self) -> Optional[RackDevice]:
        return self._rack

    def get_state(self) -> ChainState:
        """Deep copy of the current state."""
        return ChainState(
            chains=[chain.model_copy() for chain in self._chains],
            active_chain_index=self._active_index,
            rack=self._rack,
        )

    def register_observer(self, observer: ChainStateObserver) -> Unsubscribe:
        """Register an observer for chain state snapshots."""
        return self._observers.register(observer)

    # =================================================================
    # Rack lifecycle
    # =================================================================

    async def set_rack(self, rack: RackDevice) -> None:
        """
        Switch to a rack: release the old one, load chains, start listening.

        Peer failures leave an empty chain list rather than raising.
        """
        logger.info(f"Selecting rack {rack.label()} ({rack.track_id}:{rack.device_id})")
        self._release()
        self._rack = rack
        if not await self._reload():
            return
        self._subscribe()
        self._notify()

    def clear_rack(self) -> None:
        """Stop tracking the current rack and reset to the empty state."""
        if self._rack is not None:
            logger.info(f"Clearing rack {self._rack.label()}")
        self._release()
        self._rack = None
        self._chains = []
        self._active_index = -1
        self._notify()

    def close(self) -> None:
        """Release listeners and cancel outstanding reloads."""
        self._release()

    # =================================================================
    # Selection
    # =================================================================

    def select_chain(self, index: int) -> None:
        """Activate a chain. Ignored when no rack is set or index is out of range."""
        rack = self._rack
        if rack is None or not 0 <= index < len(self._chains):
            logger.debug(f"Ignoring select_chain({index}) with {len(self._chains)} chain(s)")
            return

        previous = self._active_index
        if previous >= 0 and previous != index:
            self._strategy.deactivate(self._osc, rack, previous)
        self._strategy.activate(self._osc, rack, index)
        self._osc.send(SET_SELECTED_CHAIN_ADDRESS, rack.track_id, rack.device_id, index)

        logger.info(f"Selected chain {index}: {self._chains[index].name}")
        self._set_active(index)
        self._notify()

    def select_next(self) -> None:
        """Select the following chain, wrapping to the first."""
        if not self._chains:
            return
        self.select_chain((self._active_index + 1) % len(self._chains))

    def select_previous(self) -> None:
        """Select the preceding chain, wrapping to the last."""
        if not self._chains:
            return
        count = len(self._chains)
        self.select_chain((self._active_index - 1 + count) % count)

    # =================================================================
    # Loading
    # =================================================================

    async def _reload(self) -> bool:
        """
        Fetch names, colors and the selected chain, then initialize the rack.

        Returns False without touching any state when the rack was cleared
        or replaced while the queries were in flight.
        """
        rack = self._rack
        if rack is None:
            return False

        ids = rack.key
        queries = [
            self._osc.request(CHAIN_NAMES_ADDRESS, *ids),
            self._osc.request(CHAIN_COLORS_ADDRESS, *ids),
            self._osc.request(SELECTED_CHAIN_ADDRESS, *ids),
        ]
        if self._strategy.flags_address:
            queries.append(self._osc.request(self._strategy.flags_address, *ids))

        try:
            replies = await asyncio.gather(*queries)
        except Exception as e:
            if self._rack is not rack:
                return False
            logger.error(f"Error loading chains for {rack.label()}: {e}")
            self._chains = []
            self._active_index = -1
            return True

        if self._rack is not rack:
            logger.debug(f"Discarding chains of {rack.label()}, rack changed while loading")
            return False

        names = _values(replies[0])
        colors = _values(replies[1])
        selected = replies[2].arg(2, 0)
        flags = _values(replies[3]) if len(replies) > 3 else []

        active = next((i for i, flag in enumerate(flags[: len(names)]) if flag), None)
        if active is None:
            active = selected if isinstance(selected, int) and 0 <= selected < len(names) else -1

        self._chains = [
            Chain(
                index=i,
                name=str(name),
                color_index=colors[i] if i < len(colors) and isinstance(colors[i], int) else 0,
                is_active=i == active,
            )
            for i, name in enumerate(names)
        ]
        self._active_index = active
        logger.info(f"Loaded {len(self._chains)} chain(s) for {rack.label()}, active {active}")

        self._strategy.initialize(self._osc, rack, len(self._chains), active)
        return True

    async def _reload_and_notify(self) -> None:
        if await self._reload():
            self._notify()

    # =================================================================
    # Peer listeners
    # =================================================================

    def _subscribe(self) -> None:
        rack = self._rack
        if rack is None:
            return

        self._osc.send(START_LISTEN_CHAINS, *rack.key)
        self._subscriptions.append(self._router.on(CHAINS_CHANGED_ADDRESS, self._on_chains_changed))
        self._osc.send(START_LISTEN_SELECTED, *rack.key)
        self._subscriptions.append(self._router.on(SELECTED_CHAIN_ADDRESS, self._on_selected_chain))

    def _release(self) -> None:
        if self._rack is not None:
            self._osc.send(STOP_LISTEN_CHAINS, *self._rack.key)
            self._osc.send(STOP_LISTEN_SELECTED, *self._rack.key)
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def _is_current_rack(self, message: OscMessage) -> bool:
        return self._rack is not None and self._rack.matches(message.arg(0), message.arg(1))

    def _on_chains_changed(self, message: OscMessage) -> None:
        if not self._is_current_rack(message):
            return

        logger.debug("Chain list changed on peer, reloading")
        task = asyncio.get_running_loop().create_task(self._reload_and_notify())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_selected_chain(self, message: OscMessage) -> None:
        if not self._is_current_rack(message):
            return

        index = message.arg(2)
        if not isinstance(index, int) or not 0 <= index < len(self._chains):
            index = -1
        logger.debug(f"Peer selected chain {index}")
        self._set_active(index)
        self._notify()

    # =================================================================
    # State helpers
    # =================================================================

    def _set_active(self, index: int) -> None:
        self._active_index = index
        self._chains = [chain.model_copy(update={"is_active": chain.index == index}) for chain in self._chains]

    def _notify(self) -> None:
        self._observers.notify("on_chain_state_changed", self.get_state())
