"""
Application orchestrator wiring the OSC, chain and MIDI services together.

The orchestrator is the single entry point for user-facing commands (CLI or
any other front end). It owns every service, restores the last session when
the peer connects, and writes user choices back through the config service.
"""

import asyncio
import logging
from typing import Any, Optional

from chainselector.chain import ChainDiscovery, ChainManager, strategy_for
from chainselector.model_manager import ModelManagerService, Unsubscribe
from chainselector.models import (
    AppConfig,
    ChainState,
    ConnectionState,
    ConnectionStatus,
    LearnTarget,
    MidiPadConfig,
    RackDevice,
)
from chainselector.midi import MidiChainNavigator, MidiInputService
from chainselector.osc import OscClient, OscMessageRouter
from chainselector.protocols import ChainStateObserver, ConnectionObserver, LearnEvent, LearnObserver

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Top-level coordinator for the chain selector.

    Architecture:
        Orchestrator (this class)
        ├── Config: config_service (ModelManagerService[AppConfig])
        ├── OSC: osc, router, discovery, chain_manager
        └── MIDI: midi, navigator

    The orchestrator observes OSC status (to restore the saved rack on
    every connect), chain state (to remember the active chain) and learn
    events (to save learned pads).
    """

    def __init__(
        self,
        config_service: ModelManagerService[AppConfig],
        *,
        osc: Optional[OscClient] = None,
        midi: Optional[MidiInputService] = None,
        auto_save: bool = True,
    ):
        """
        Build all services from the current config.

        Args:
            config_service: Config collaborator, read at construction and
                written on user choices
            osc: OSC client to use instead of one built from config
            midi: MIDI input service to use instead of one built from config
            auto_save: Save the config to disk after every change
        """
        self.config_service = config_service
        self.auto_save = auto_save
        config = config_service.get_model()

        self.osc = osc or OscClient(config.osc_send_host, config.osc_send_port, config.osc_receive_port)
        self.router = OscMessageRouter(self.osc)
        self.discovery = ChainDiscovery(self.osc)
        self.chain_manager = ChainManager(self.osc, self.router, strategy_for(config.switch_strategy))
        self.midi = midi or MidiInputService(poll_interval=config.midi_poll_interval)
        self.navigator = MidiChainNavigator(self.chain_manager, config.midi_pads)

        self._subscriptions: list[Unsubscribe] = [
            self.navigator.attach(self.midi),
            self.osc.register_status_observer(self),
            self.chain_manager.register_observer(self),
            self.navigator.register_observer(self),
        ]
        self._tasks: set[asyncio.Task] = set()
        self._stop_event: Optional[asyncio.Event] = None
        self._started = False

    # =================================================================
    # Lifecycle
    # =================================================================

    async def start(self) -> None:
        """
        Connect OSC, start MIDI monitoring and restore the saved MIDI setup.

        Raises:
            OSError: If the OSC receive port cannot be bound
        """
        if self._started:
            logger.warning("Orchestrator is already started")
            return

        logger.info("Starting chain selector")
        config = self.config_service.get_model()
        self.navigator.set_config(config.midi_pads)

        await self.osc.connect()
        self._started = True

        self.midi.start()
        if config.selected_midi_device:
            if not await self.midi.select_device(config.selected_midi_device):
                logger.warning(f"Saved MIDI device not available: {config.selected_midi_device}")

    async def stop(self) -> None:
        """Release listeners, close sockets and ports. Safe to call twice."""
        if not self._started:
            return
        self._started = False
        logger.info("Stopping chain selector")

        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        self.chain_manager.close()
        self.osc.disconnect()
        await self.midi.stop()

    async def run(self) -> None:
        """Start, wait until request_stop() (or cancellation), then stop."""
        self._stop_event = asyncio.Event()
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    def request_stop(self) -> None:
        """Make run() return."""
        if self._stop_event is not None:
            self._stop_event.set()

    # =================================================================
    # Chains
    # =================================================================

    async def discover(self) -> list[RackDevice]:
        """List the racks in the Live set."""
        return await self.discovery.discover()

    def get_state(self) -> ChainState:
        return self.chain_manager.get_state()

    def select(self, index: int) -> None:
        self.chain_manager.select_chain(index)

    def next(self) -> None:
        self.chain_manager.select_next()

    def prev(self) -> None:
        self.chain_manager.select_previous()

    async def select_rack(self, rack: RackDevice) -> None:
        """Remember the rack and load its chains."""
        self._persist(selected_track_id=rack.track_id, selected_device_id=rack.device_id)
        await self.chain_manager.set_rack(rack)

    def clear_rack(self) -> None:
        """Forget the rack."""
        self._persist(selected_track_id=None, selected_device_id=None)
        self.chain_manager.clear_rack()

    # =================================================================
    # MIDI
    # =================================================================

    def list_midi_devices(self) -> list[str]:
        return self.midi.list_devices()

    async def select_midi_device(self, name: str) -> bool:
        """Open a MIDI input; remembered only if it opened."""
        success = await self.midi.select_device(name)
        if success:
            self._persist(selected_midi_device=name)
        return success

    def get_midi_config(self) -> MidiPadConfig:
        return self.navigator.get_config()

    def start_learn(self, target: LearnTarget) -> None:
        self.navigator.start_learn(target)

    def stop_learn(self) -> None:
        self.navigator.stop_learn()

    # =================================================================
    # Status
    # =================================================================

    def get_connection_state(self) -> ConnectionState:
        return ConnectionState(
            osc=self.osc.status,
            midi=self.midi.status,
            midi_device_name=self.midi.device_name,
        )

    def register_chain_observer(self, observer: ChainStateObserver) -> Unsubscribe:
        return self.chain_manager.register_observer(observer)

    def register_osc_status_observer(self, observer: ConnectionObserver) -> Unsubscribe:
        return self.osc.register_status_observer(observer)

    def register_midi_status_observer(self, observer: ConnectionObserver) -> Unsubscribe:
        return self.midi.register_status_observer(observer)

    def register_learn_observer(self, observer: LearnObserver) -> Unsubscribe:
        return self.navigator.register_observer(observer)

    # =================================================================
    # Observer callbacks
    # =================================================================

    def on_connection_status_changed(self, status: ConnectionStatus) -> None:
        """Restore the saved session each time the peer (re)connects."""
        if status != ConnectionStatus.CONNECTED:
            return

        task = asyncio.get_running_loop().create_task(self._restore_session())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def on_chain_state_changed(self, state: ChainState) -> None:
        """Remember the active chain for the next session."""
        if state.rack is None or state.active_chain_index < 0:
            return
        if state.active_chain_index != self.config_service.get("last_active_chain_index"):
            self._persist(last_active_chain_index=state.active_chain_index)

    def on_learn_event(
        self,
        event: LearnEvent,
        target: Optional[LearnTarget] = None,
        config: Optional[MidiPadConfig] = None,
    ) -> None:
        """Save learned pads."""
        if event == LearnEvent.COMPLETE and config is not None:
            self._persist(midi_pads=config.model_dump())

    # =================================================================
    # Helpers
    # =================================================================

    async def _restore_session(self) -> None:
        config = self.config_service.get_model()

        if not config.has_saved_rack:
            if self.chain_manager.rack is not None:
                logger.info("No saved rack, clearing stale rack")
                self.chain_manager.clear_rack()
            return

        rack = RackDevice(track_id=config.selected_track_id, device_id=config.selected_device_id)
        logger.info(f"Restoring saved rack {rack.track_id}:{rack.device_id}")
        await self.chain_manager.set_rack(rack)

        # another selection may have replaced the rack while it loaded
        if self.chain_manager.rack is rack and config.last_active_chain_index >= 0:
            self.chain_manager.select_chain(config.last_active_chain_index)

    def _persist(self, **values: Any) -> None:
        """Write values to the config, saving to disk when auto-save is on."""
        self.config_service.update(values)
        if not self.auto_save or self.config_service.default_path is None:
            return
        try:
            self.config_service.save()
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
