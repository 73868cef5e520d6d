"""OSC transport exceptions.

- OscError: Base class for transport errors
- OscTimeoutError: A request got no matching reply before its deadline
- OscNotConnectedError: A request was attempted while the socket is closed
"""

from .base import ChainSelectorError


class OscError(ChainSelectorError):
    """Communication with the OSC peer failed."""
    pass


class OscTimeoutError(OscError):
    """No reply arrived on the requested address in time."""

    def __init__(self, address: str, timeout: float):
        """
        Initialize request timeout error.

        Args:
            address: The OSC address that was requested
            timeout: Seconds waited before giving up
        """
        super().__init__(
            user_message=f"OSC request timeout: {address}",
            technical_message=f"No reply on {address} within {timeout:.1f}s",
            recoverable=True,
            recovery_hint=(
                "Check that Ableton Live is running with the AbletonOSC "
                "control surface enabled, and that the send/receive ports match."
            ),
        )
        self.address = address
        self.timeout = timeout


class OscNotConnectedError(OscError):
    """The OSC socket is not open."""

    def __init__(self, address: str):
        """
        Initialize not-connected error.

        Args:
            address: The OSC address that could not be requested
        """
        super().__init__(
            user_message=f"OSC client is not connected: {address}",
            recoverable=True,
            recovery_hint="Connect the OSC client before sending requests.",
        )
        self.address = address
