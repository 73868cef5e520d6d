"""UDP/OSC client for the AbletonOSC control surface.

The client owns one UDP socket bound to the receive port. Outgoing messages
are sent from it to the peer; replies and listener notifications arrive on
it. A heartbeat task keeps the listener registration alive and a watchdog
marks the peer as gone when it stops answering.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Optional

from chainselector.exceptions import OscNotConnectedError, OscTimeoutError
from chainselector.model_manager import ObserverManager, Unsubscribe
from chainselector.models import ConnectionStatus
from chainselector.protocols import ConnectionObserver

from .message import OscDecodeError, OscMessage, decode_packet, encode_message

logger = logging.getLogger(__name__)

REGISTER_ADDRESS = "/live/api/register_listener"
UNREGISTER_ADDRESS = "/live/api/unregister_listener"
TEST_ADDRESS = "/live/test"

# Inbound addresses that prove the peer is alive
LIVENESS_ADDRESSES = frozenset({REGISTER_ADDRESS, TEST_ADDRESS})

MessageHandler = Callable[[OscMessage], None]


class _OscProtocol(asyncio.DatagramProtocol):
    """Forwards datagrams from the event loop to the owning client."""

    def __init__(self, client: "OscClient"):
        self._client = client

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._client._handle_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        # ICMP port unreachable etc. while the peer is down
        logger.debug(f"OSC socket error: {exc}")


class OscClient:
    """
    Fire-and-forget sends, address-correlated requests and liveness tracking.

    Status moves disconnected -> connecting on connect(), connecting ->
    connected on the first liveness reply, and back to disconnected on
    watchdog timeout or disconnect().

    Threading:
        Everything runs on the asyncio event loop. Status observers and
        message handlers are called synchronously from the datagram callback.
    """

    def __init__(
        self,
        send_host: str = "127.0.0.1",
        send_port: int = 11000,
        receive_port: int = 11002,
        *,
        request_timeout: float = 5.0,
        heartbeat_interval: float = 5.0,
        liveness_timeout: float = 10.0,
    ):
        """
        Initialize the client (no socket is opened until connect()).

        Args:
            send_host: Host running AbletonOSC
            send_port: Port AbletonOSC listens on
            receive_port: Local port for replies and notifications (0 picks a free port)
            request_timeout: Default seconds request() waits for a reply
            heartbeat_interval: Seconds between registration/probe sends
            liveness_timeout: Seconds of silence before the peer counts as gone
        """
        self.send_host = send_host
        self.send_port = send_port
        self.receive_port = receive_port
        self.request_timeout = request_timeout
        self.heartbeat_interval = heartbeat_interval
        self.liveness_timeout = liveness_timeout

        self._transport: Optional[asyncio.DatagramTransport] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._status = ConnectionStatus.DISCONNECTED
        self._registered = False
        self._last_seen: Optional[float] = None
        self._connected = asyncio.Event()

        self._pending: dict[str, list[asyncio.Future]] = {}
        self._message_handlers: list[MessageHandler] = []
        self._status_observers = ObserverManager[ConnectionObserver](observer_type_name="connection")

    # =================================================================
    # Properties
    # =================================================================

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._status

    @property
    def is_open(self) -> bool:
        """Whether the UDP socket is bound."""
        return self._transport is not None

    @property
    def is_registered(self) -> bool:
        """Whether a listener registration has been sent since the last reset."""
        return self._registered

    @property
    def last_seen(self) -> Optional[float]:
        """Monotonic time of the last liveness reply, or None."""
        return self._last_seen

    @property
    def local_port(self) -> Optional[int]:
        """Port the socket is actually bound to."""
        if self._transport is None:
            return None
        sockname = self._transport.get_extra_info("sockname")
        return sockname[1] if sockname else None

    # =================================================================
    # Observers
    # =================================================================

    def register_status_observer(self, observer: ConnectionObserver) -> Unsubscribe:
        """Register an observer for status transitions."""
        return self._status_observers.register(observer)

    def on_message(self, handler: MessageHandler) -> Unsubscribe:
        """
        Register a handler for every inbound message.

        Returns:
            Callable that removes the handler
        """
        self._message_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._message_handlers:
                self._message_handlers.remove(handler)

        return unsubscribe

    # =================================================================
    # Lifecycle
    # =================================================================

    async def connect(self) -> None:
        """
        Bind the socket, then start registering with the peer.

        An open session is torn down first.

        Raises:
            OSError: If the receive port cannot be bound
        """
        if self._transport is not None:
            self.disconnect()

        self._set_status(ConnectionStatus.CONNECTING)
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _OscProtocol(self),
                local_addr=("127.0.0.1", self.receive_port),
            )
        except OSError as e:
            logger.error(f"Failed to bind OSC receive port {self.receive_port}: {e}")
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise

        self._transport = transport
        logger.info(
            f"OSC socket bound on 127.0.0.1:{self.local_port}, "
            f"sending to {self.send_host}:{self.send_port}"
        )
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())

    def disconnect(self) -> None:
        """
        Unregister, stop the heartbeat, fail pending requests and close the socket.

        Safe to call repeatedly.
        """
        if self._transport is not None and self._registered:
            self.send(UNREGISTER_ADDRESS, self.local_port or self.receive_port)
        self._registered = False

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None

        pending, self._pending = self._pending, {}
        for address, futures in pending.items():
            for future in futures:
                if not future.done():
                    future.set_exception(OscNotConnectedError(address))

        if self._transport is not None:
            self._transport.close()
            self._transport = None
            logger.info("OSC socket closed")

        self._set_status(ConnectionStatus.DISCONNECTED)

    async def wait_connected(self, timeout: Optional[float] = None) -> None:
        """
        Wait until the peer has answered a liveness probe.

        Raises:
            OscNotConnectedError: If the socket is not open
            OscTimeoutError: If the peer does not answer in time
        """
        if self._transport is None:
            raise OscNotConnectedError(TEST_ADDRESS)

        timeout = self.liveness_timeout if timeout is None else timeout
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
        except asyncio.TimeoutError:
            raise OscTimeoutError(TEST_ADDRESS, timeout) from None

    # =================================================================
    # Sending
    # =================================================================

    def send(self, address: str, *args: Any) -> None:
        """Send a message without waiting for anything. No-op while closed."""
        if self._transport is None:
            logger.debug(f"OSC send dropped (not connected): {address} {args}")
            return

        logger.debug(f"OSC -> {address} {args}")
        self._transport.sendto(encode_message(address, *args), (self.send_host, self.send_port))

    async def request(self, address: str, *args: Any, timeout: Optional[float] = None) -> OscMessage:
        """
        Send a message and wait for the next inbound message on the same address.

        Correlation is by address only: concurrent requests on one address
        are all resolved by the first reply that arrives there.

        Args:
            address: OSC address to send to and wait on
            *args: Message arguments
            timeout: Seconds to wait, defaults to request_timeout

        Returns:
            The reply message

        Raises:
            OscNotConnectedError: If the socket is not open, or it closes while waiting
            OscTimeoutError: If no reply arrives in time
        """
        if self._transport is None:
            raise OscNotConnectedError(address)

        timeout = self.request_timeout if timeout is None else timeout
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending.setdefault(address, []).append(future)

        try:
            self.send(address, *args)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"OSC request timed out after {timeout:.1f}s: {address}")
            raise OscTimeoutError(address, timeout) from None
        finally:
            self._discard_pending(address, future)

    def _discard_pending(self, address: str, future: asyncio.Future) -> None:
        futures = self._pending.get(address)
        if futures is None:
            return
        if future in futures:
            futures.remove(future)
        if not futures:
            del self._pending[address]

    # =================================================================
    # Receiving
    # =================================================================

    def _handle_datagram(self, data: bytes, addr: tuple[str, int]) -> None:
        try:
            messages = decode_packet(data)
        except OscDecodeError as e:
            logger.debug(f"Dropping malformed OSC datagram from {addr}: {e}")
            return

        for message in messages:
            self._dispatch(message)

    def _dispatch(self, message: OscMessage) -> None:
        """Route one inbound message: liveness, pending requests, then handlers."""
        logger.debug(f"OSC <- {message.address} {message.args}")

        if message.address in LIVENESS_ADDRESSES:
            self._last_seen = time.monotonic()
            self._set_status(ConnectionStatus.CONNECTED)

        for future in self._pending.pop(message.address, []):
            if not future.done():
                future.set_result(message)

        for handler in list(self._message_handlers):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Error in OSC message handler for {message.address}: {e}", exc_info=True)

    # =================================================================
    # Heartbeat / watchdog
    # =================================================================

    async def _heartbeat_loop(self) -> None:
        logger.debug(f"OSC heartbeat started (every {self.heartbeat_interval}s)")
        while True:
            self._tick()
            await asyncio.sleep(self.heartbeat_interval)

    def _tick(self) -> None:
        """One heartbeat: watchdog check, then registration and probe."""
        self._check_liveness()
        self.send(REGISTER_ADDRESS, self.local_port or self.receive_port)
        self._registered = True
        self.send(TEST_ADDRESS)

    def _check_liveness(self, now: Optional[float] = None) -> None:
        if self._status != ConnectionStatus.CONNECTED or self._last_seen is None:
            return

        now = time.monotonic() if now is None else now
        silence = now - self._last_seen
        if silence > self.liveness_timeout:
            logger.warning(f"No reply from OSC peer for {silence:.1f}s, marking disconnected")
            self._registered = False
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return

        logger.info(f"OSC connection: {self._status.value} -> {status.value}")
        self._status = status
        if status == ConnectionStatus.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()
        self._status_observers.notify("on_connection_status_changed", status)
