"""Dispatch inbound OSC messages to per-address handlers."""

import logging
from typing import TYPE_CHECKING

from chainselector.model_manager import Unsubscribe

from .client import MessageHandler
from .message import OscMessage

if TYPE_CHECKING:
    from .client import OscClient

logger = logging.getLogger(__name__)


class OscMessageRouter:
    """
    Exact-match address router on top of OscClient.on_message.

    Handlers for one address run synchronously in registration order. A
    handler that raises is logged and the remaining handlers still run.
    """

    def __init__(self, client: "OscClient"):
        self._handlers: dict[str, list[MessageHandler]] = {}
        self._detach: Unsubscribe | None = client.on_message(self.dispatch)

    def on(self, address: str, handler: MessageHandler) -> Unsubscribe:
        """
        Register a handler for one address.

        Returns:
            Callable that removes exactly this registration
        """
        # Wrap so the same function can be registered twice and removed once
        def registration(message: OscMessage) -> None:
            handler(message)

        self._handlers.setdefault(address, []).append(registration)

        def unsubscribe() -> None:
            handlers = self._handlers.get(address)
            if handlers is None or registration not in handlers:
                return
            handlers.remove(registration)
            if not handlers:
                del self._handlers[address]

        return unsubscribe

    def has_handlers(self, address: str) -> bool:
        """Check if anything is registered for an address."""
        return address in self._handlers

    def dispatch(self, message: OscMessage) -> None:
        """Call every handler registered for the message's address."""
        for handler in list(self._handlers.get(message.address, ())):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Error in OSC route handler for {message.address}: {e}", exc_info=True)

    def close(self) -> None:
        """Detach from the client and drop all handlers."""
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._handlers.clear()
