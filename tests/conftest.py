"""Pytest fixtures and fakes for tests."""

import asyncio
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any, Callable, Optional, Union

import pytest

from chainselector.exceptions import OscTimeoutError
from chainselector.model_manager import ModelManagerService, ObserverManager
from chainselector.models import AppConfig, ConnectionStatus, MidiMessage, MidiMessageType, RackDevice
from chainselector.osc import LIVENESS_ADDRESSES, OscMessage, decode_packet, encode_message

Reply = Union[tuple, OscMessage, Exception, Callable[..., Any]]


class FakeOscClient:
    """
    In-memory stand-in for OscClient.

    Fire-and-forget sends are recorded in `sent`; requests are recorded in
    `requests` and answered from `replies` (args tuple, OscMessage, an
    exception to raise, or a callable taking the request args). Requests
    without a reply time out.
    """

    def __init__(self):
        self.sent: list[tuple[str, tuple]] = []
        self.requests: list[tuple[str, tuple]] = []
        self.replies: dict[str, Reply] = {}
        self.status = ConnectionStatus.DISCONNECTED
        self.connect_calls = 0
        self.disconnect_calls = 0
        self._handlers: list[Callable[[OscMessage], None]] = []
        self._status_observers = ObserverManager(observer_type_name="connection")

    def send(self, address: str, *args: Any) -> None:
        self.sent.append((address, args))

    async def request(self, address: str, *args: Any, timeout: Optional[float] = None) -> OscMessage:
        self.requests.append((address, args))
        await asyncio.sleep(0)

        reply = self.replies.get(address)
        if reply is None:
            raise OscTimeoutError(address, timeout or 0.0)
        if callable(reply):
            reply = reply(*args)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, OscMessage):
            return reply
        return OscMessage(address, tuple(reply))

    def on_message(self, handler: Callable[[OscMessage], None]):
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def register_status_observer(self, observer):
        return self._status_observers.register(observer)

    async def connect(self) -> None:
        self.connect_calls += 1
        self.set_status(ConnectionStatus.CONNECTING)

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.set_status(ConnectionStatus.DISCONNECTED)

    # Test helpers

    def deliver(self, address: str, *args: Any) -> None:
        """Simulate an inbound message from the peer."""
        message = OscMessage(address, args)
        for handler in list(self._handlers):
            handler(message)

    def set_status(self, status: ConnectionStatus) -> None:
        if status != self.status:
            self.status = status
            self._status_observers.notify("on_connection_status_changed", status)

    def sent_to(self, address: str) -> list[tuple]:
        return [args for addr, args in self.sent if addr == address]


class FakeMidiService:
    """In-memory stand-in for MidiInputService."""

    def __init__(self, devices: Optional[list[str]] = None):
        self.devices = devices if devices is not None else ["Pad Controller"]
        self.status = ConnectionStatus.DISCONNECTED
        self.device_name: Optional[str] = None
        self.started = False
        self.stopped = False
        self._handlers: list[Callable[[MidiMessage], None]] = []
        self._status_observers = ObserverManager(observer_type_name="midi status")

    def list_devices(self) -> list[str]:
        return list(self.devices)

    async def select_device(self, name: str) -> bool:
        if name not in self.devices:
            return False
        self.device_name = name
        self.status = ConnectionStatus.CONNECTED
        self._status_observers.notify("on_connection_status_changed", self.status)
        return True

    def on_message(self, handler):
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def register_status_observer(self, observer):
        return self._status_observers.register(observer)

    def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True
        self.status = ConnectionStatus.DISCONNECTED

    def press(self, note: int, channel: int = 1, velocity: int = 100) -> None:
        """Simulate a pad hit."""
        message = MidiMessage(MidiMessageType.NOTE_ON, note, velocity, channel)
        for handler in list(self._handlers):
            handler(message)


class FakePeer(asyncio.DatagramProtocol):
    """
    A real UDP endpoint playing AbletonOSC.

    Echoes liveness probes (unless `answer_liveness` is False) and answers
    addresses listed in `replies` with the given args.
    """

    def __init__(self, replies: Optional[dict[str, tuple]] = None):
        self.replies = replies or {}
        self.answer_liveness = True
        self.received: list[OscMessage] = []
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        for message in decode_packet(data):
            self.received.append(message)
            if message.address in LIVENESS_ADDRESSES:
                if self.answer_liveness:
                    self.transport.sendto(encode_message(message.address, *message.args), addr)
            elif message.address in self.replies:
                self.transport.sendto(encode_message(message.address, *self.replies[message.address]), addr)

    @property
    def port(self) -> int:
        return self.transport.get_extra_info("sockname")[1]

    def addresses(self) -> list[str]:
        return [message.address for message in self.received]

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()


async def start_peer(replies: Optional[dict[str, tuple]] = None) -> FakePeer:
    """Bind a FakePeer on an ephemeral localhost port."""
    loop = asyncio.get_running_loop()
    _, peer = await loop.create_datagram_endpoint(
        lambda: FakePeer(replies),
        local_addr=("127.0.0.1", 0),
    )
    return peer


async def wait_until(condition: Callable[[], bool], timeout: float = 1.0) -> bool:
    """Poll a condition on the event loop until it holds or timeout passes."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            return False
        await asyncio.sleep(0.01)
    return True


# Canned AbletonOSC replies for a rack on track 0, device 1 with chains A, B, C
RACK = RackDevice(track_id=0, device_id=1, track_name="Keys", device_name="Instrument Rack")
CHAIN_REPLIES = {
    "/live/device/get/chains/name": (0, 1, "A", "B", "C"),
    "/live/device/get/chains/color_index": (0, 1, 5, 6, 7),
    "/live/device/get/selected_chain": (0, 1, 0),
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def osc():
    """FakeOscClient preloaded with replies for RACK."""
    client = FakeOscClient()
    client.replies.update(CHAIN_REPLIES)
    return client


@pytest.fixture
def midi():
    return FakeMidiService()


@pytest.fixture
def rack():
    return RACK


@pytest.fixture
def config_service(temp_dir):
    """Config service backed by a file in a temp directory."""
    return ModelManagerService[AppConfig](AppConfig, AppConfig(), default_path=temp_dir / "config.json")

