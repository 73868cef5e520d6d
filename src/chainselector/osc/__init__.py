"""OSC transport: message codec, UDP client and address router."""

from .client import (
    LIVENESS_ADDRESSES,
    REGISTER_ADDRESS,
    TEST_ADDRESS,
    UNREGISTER_ADDRESS,
    MessageHandler,
    OscClient,
)
from .message import OscDecodeError, OscMessage, decode_packet, encode_message
from .router import OscMessageRouter

__all__ = [
    "LIVENESS_ADDRESSES",
    "MessageHandler",
    "OscClient",
    "OscDecodeError",
    "OscMessage",
    "OscMessageRouter",
    "REGISTER_ADDRESS",
    "TEST_ADDRESS",
    "UNREGISTER_ADDRESS",
    "decode_packet",
    "encode_message",
]
