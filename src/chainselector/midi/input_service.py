"""MIDI input port selection with hot-plug recovery."""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from typing import Optional

import mido

from chainselector.model_manager import ObserverManager, Unsubscribe
from chainselector.models import ConnectionStatus, MidiMessage
from chainselector.protocols import ConnectionObserver

logger = logging.getLogger(__name__)

MidiMessageHandler = Callable[[MidiMessage], None]


class MidiInputService:
    """
    Opens one user-selected MIDI input port and forwards its messages.

    A monitor task polls the port list: when the selected port disappears
    it is closed and the status drops to disconnected; when it comes back
    it is reopened.

    Threading:
        mido calls back on its own I/O thread. Messages are parsed there and
        handed to the event loop with call_soon_threadsafe, so handlers and
        observers always run on the loop.
    """

    def __init__(self, poll_interval: float = 2.0):
        """
        Initialize the service (no port is opened).

        Args:
            poll_interval: How often to check for device changes (seconds)
        """
        self._poll_interval = poll_interval
        self._port: Optional[mido.ports.BaseInput] = None
        self._port_lock = threading.Lock()
        self._device_name: Optional[str] = None
        self._status = ConnectionStatus.DISCONNECTED

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._known_ports: set[str] = set()

        self._handlers: list[MidiMessageHandler] = []
        self._status_observers = ObserverManager[ConnectionObserver](observer_type_name="midi status")

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def device_name(self) -> Optional[str]:
        """Name of the selected port, kept while it is unplugged."""
        return self._device_name

    @property
    def is_running(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    def list_devices(self) -> list[str]:
        """Names of the available MIDI input ports."""
        try:
            return mido.get_input_names()
        except Exception as e:
            logger.error(f"Error listing MIDI input ports: {e}")
            return []

    def on_message(self, handler: MidiMessageHandler) -> Unsubscribe:
        """
        Register a handler for parsed note and CC messages.

        Returns:
            Callable that removes the handler
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def register_status_observer(self, observer: ConnectionObserver) -> Unsubscribe:
        """Register an observer for port status transitions."""
        return self._status_observers.register(observer)

    # =================================================================
    # Port selection
    # =================================================================

    async def select_device(self, name: str) -> bool:
        """
        Close the current port and open another one.

        Returns:
            True if the port was opened
        """
        self.close_device()
        self._loop = asyncio.get_running_loop()
        self._set_status(ConnectionStatus.CONNECTING)

        if not self._open_port(name):
            self._set_status(ConnectionStatus.DISCONNECTED)
            return False

        self._device_name = name
        self._set_status(ConnectionStatus.CONNECTED)
        return True

    def close_device(self) -> None:
        """Close the port and forget the selection."""
        self._close_port()
        self._device_name = None
        self._set_status(ConnectionStatus.DISCONNECTED)

    def _open_port(self, name: str) -> bool:
        with self._port_lock:
            try:
                self._port = mido.open_input(name, callback=self._midi_callback)
            except Exception as e:
                logger.error(f"Failed to open MIDI input {name}: {e}")
                self._port = None
                return False

        logger.info(f"Connected to MIDI input: {name}")
        return True

    def _close_port(self) -> None:
        with self._port_lock:
            if self._port is None:
                return
            try:
                self._port.close()
            except Exception as e:
                logger.error(f"Error closing MIDI input port: {e}")
            self._port = None

    # =================================================================
    # Hot-plug monitor
    # =================================================================

    def start(self) -> None:
        """Start the hot-plug monitor on the running event loop."""
        if self.is_running:
            logger.warning("MidiInputService is already running")
            return

        self._loop = asyncio.get_running_loop()
        self._known_ports = set(self.list_devices())
        self._monitor_task = self._loop.create_task(self._monitor())
        logger.debug("MidiInputService started")

    async def stop(self) -> None:
        """Stop the monitor and close the port."""
        task, self._monitor_task = self._monitor_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self.close_device()
        logger.debug("MidiInputService stopped")

    async def _monitor(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                self._poll()
            except Exception as e:
                logger.error(f"Error in MIDI input monitoring: {e}")

    def _poll(self) -> None:
        """Check the port list once and close/reopen the selected port."""
        available = set(self.list_devices())

        for port in available - self._known_ports:
            logger.info(f"MIDI input port connected: {port}")
        for port in self._known_ports - available:
            logger.info(f"MIDI input port disconnected: {port}")
        self._known_ports = available

        name = self._device_name
        if name is None:
            return

        if self._port is not None and name not in available:
            logger.warning(f"MIDI input disconnected: {name}")
            self._close_port()
            self._set_status(ConnectionStatus.DISCONNECTED)
        elif self._port is None and name in available:
            logger.info(f"MIDI input detected again: {name}")
            if self._open_port(name):
                self._set_status(ConnectionStatus.CONNECTED)

    # =================================================================
    # Message delivery
    # =================================================================

    def _midi_callback(self, msg: mido.Message) -> None:
        """Called from mido's I/O thread; keep it fast."""
        message = MidiMessage.from_mido(msg)
        if message is None:
            return

        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._dispatch, message)
        except RuntimeError:
            # Loop closed between the check and the call
            logger.debug("Dropping MIDI message, event loop is closed")

    def _dispatch(self, message: MidiMessage) -> None:
        logger.debug(f"MIDI <- {message}")
        for handler in list(self._handlers):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Error in MIDI message handler: {e}", exc_info=True)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        self._status = status
        self._status_observers.notify("on_connection_status_changed", status)
