"""Protocol definitions for domain-specific observer patterns.

- Events: MIDI learn events
- Observers: Protocols for components that react to connection, chain
  state and learn events

For generic model management protocols (ModelEvent, ModelObserver),
see chainselector.model_manager.protocols.
"""

from .events import LearnEvent
from .observers import ChainStateObserver, ConnectionObserver, LearnObserver

__all__ = [
    "ChainStateObserver",
    "ConnectionObserver",
    # Events
    "LearnEvent",
    "LearnObserver",
]
