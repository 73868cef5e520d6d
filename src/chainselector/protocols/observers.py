"""Observer protocol definitions for domain-specific events.

- Connection observers: React to OSC peer / MIDI port liveness changes
- Chain state observers: React to chain list and active chain changes
- Learn observers: React to the MIDI learn workflow
"""

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chainselector.models import ChainState, ConnectionStatus, LearnTarget, MidiPadConfig

from .events import LearnEvent


@runtime_checkable
class ConnectionObserver(Protocol):
    """Observer that receives connection status transitions."""

    def on_connection_status_changed(self, status: "ConnectionStatus") -> None:
        """
        Handle a status transition.

        Args:
            status: The new status (only called when it actually changes)

        Threading:
            Called on the asyncio event loop.
        """
        ...


@runtime_checkable
class ChainStateObserver(Protocol):
    """
    Observer that receives chain state snapshots.

    Each snapshot replaces the previous one entirely; it is not a diff.
    """

    def on_chain_state_changed(self, state: "ChainState") -> None:
        """
        Handle a new chain state.

        Args:
            state: Deep copy of chains, active index and rack

        Threading:
            Called on the asyncio event loop after the update is fully applied.
        """
        ...


@runtime_checkable
class LearnObserver(Protocol):
    """Observer that receives MIDI learn events."""

    def on_learn_event(
        self,
        event: "LearnEvent",
        target: Optional["LearnTarget"] = None,
        config: Optional["MidiPadConfig"] = None,
    ) -> None:
        """
        Handle a learn event.

        Args:
            event: STARTED, STOPPED or COMPLETE
            target: The learn target (STARTED and COMPLETE)
            config: Copy of the full pad mapping after assignment (COMPLETE),
                for the caller to persist
        """
        ...
