"""Observer list shared by every service that publishes events.

Registration returns an unsubscribe handle, so subscribers can detach
without keeping a reference to the publisher.
"""

import logging
from collections.abc import Callable
from threading import Lock
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=object)

Unsubscribe = Callable[[], None]


class ObserverManager(Generic[T]):
    """
    Ordered, duplicate-free list of observers.

    Publishers call ``notify("on_something", ...)``; each observer's method
    of that name is called in registration order. One observer raising
    does not stop the others.

    Used by OscClient and MidiInputService (connection status),
    ChainManager (chain state), MidiChainNavigator (learn events) and
    ModelManagerService (config changes).

    Thread Safety:
        The list is guarded by a lock that is never held while callbacks
        run, so observers may subscribe or unsubscribe from inside a
        callback. mido's input thread is the only non-loop caller.
    """

    def __init__(self, lock: Optional[Lock] = None, observer_type_name: str = "observer"):
        """
        Args:
            lock: Lock to share with the owner; a new one by default
            observer_type_name: Label used in log lines (e.g. "chain state")
        """
        self._observers: list[T] = []
        self._lock = lock or Lock()
        self._label = observer_type_name

    def register(self, observer: T) -> Unsubscribe:
        """
        Add an observer unless it is already present.

        Returns:
            Handle that removes the observer; safe to call repeatedly
        """
        with self._lock:
            if observer in self._observers:
                logger.debug(f"{self._label} observer already registered: {observer}")
            else:
                self._observers.append(observer)
                logger.debug(f"Registered {self._label} observer: {observer}")

        return lambda: self.unregister(observer, quiet=True)

    def unregister(self, observer: T, quiet: bool = False) -> None:
        """Remove an observer. Unknown observers are logged unless quiet."""
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                if not quiet:
                    logger.warning(f"Attempted to unregister unknown {self._label} observer: {observer}")
                return
        logger.debug(f"Unregistered {self._label} observer: {observer}")

    def notify(self, callback_name: str, *args: Any, **kwargs: Any) -> None:
        """Call ``callback_name`` on a snapshot of the observers; errors are logged."""
        with self._lock:
            snapshot = tuple(self._observers)

        for observer in snapshot:
            callback = getattr(observer, callback_name, None)
            if callback is None:
                logger.error(f"{self._label} observer {observer} has no method '{callback_name}'")
                continue
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"{self._label} observer {observer} failed in {callback_name}: {e}", exc_info=True)

    def __contains__(self, observer: T) -> bool:
        with self._lock:
            return observer in self._observers

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)
