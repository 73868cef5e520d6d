"""OSC messages as chainselector sees them, built and parsed with python-osc.

Outgoing arguments are limited to what AbletonOSC expects: int32 (i),
float32 (f) and string (s). Inbound datagrams may be messages or bundles;
bundles are flattened into their messages.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from pythonosc.osc_message_builder import BuildError, OscMessageBuilder
from pythonosc.osc_packet import OscPacket, ParseError

OscArg = Union[int, float, str, bool, bytes, None]


class OscDecodeError(ValueError):
    """Datagram is not a well-formed OSC packet."""


@dataclass(frozen=True)
class OscMessage:
    """An addressed OSC message with its decoded arguments."""

    address: str
    args: tuple[OscArg, ...] = field(default_factory=tuple)

    def arg(self, index: int, default: Any = None) -> Any:
        """Positional argument, or default when the reply is too short."""
        if 0 <= index < len(self.args):
            return self.args[index]
        return default


def _typed(arg: Any) -> tuple[Any, str]:
    # bool before int; AbletonOSC wants 0/1 flags, not T/F
    if isinstance(arg, bool):
        return int(arg), OscMessageBuilder.ARG_TYPE_INT
    if isinstance(arg, int):
        return arg, OscMessageBuilder.ARG_TYPE_INT
    if isinstance(arg, float):
        return arg, OscMessageBuilder.ARG_TYPE_FLOAT
    return str(arg), OscMessageBuilder.ARG_TYPE_STRING


def encode_message(address: str, *args: Any) -> bytes:
    """
    Build an OSC message datagram.

    Booleans are sent as int 0/1, ints as int32, floats as float32 and
    everything else as its string form.

    Raises:
        ValueError: If an argument cannot be encoded (e.g. an int beyond int32)
    """
    builder = OscMessageBuilder(address=address)
    for arg in args:
        value, arg_type = _typed(arg)
        builder.add_arg(value, arg_type)
    try:
        return builder.build().dgram
    except BuildError as e:
        raise ValueError(f"Cannot encode OSC message {address} {args}: {e}") from e


def decode_packet(data: bytes) -> list[OscMessage]:
    """
    Parse a datagram holding a message or a bundle.

    Time tags are ignored; everything is dispatched immediately.

    Raises:
        OscDecodeError: If the datagram is malformed
    """
    try:
        packet = OscPacket(data)
    except (ParseError, ValueError) as e:
        # ValueError covers undecodable UTF-8 in strings
        raise OscDecodeError(str(e)) from e
    return [OscMessage(timed.message.address, tuple(timed.message.params)) for timed in packet.messages]
