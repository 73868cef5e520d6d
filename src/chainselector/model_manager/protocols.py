"""Change events emitted by ModelManagerService and the matching observer."""

from enum import Enum
from typing import Protocol, runtime_checkable


class ModelEvent(Enum):
    """What happened to the managed model."""

    MODEL_LOADED = "model_loaded"
    MODEL_SAVED = "model_saved"
    MODEL_UPDATED = "model_updated"
    MODEL_RESET = "model_reset"


@runtime_checkable
class ModelObserver(Protocol):
    """Receives config changes, e.g. to react when the user edits a port."""

    def on_model_event(self, event: ModelEvent, **kwargs) -> None:
        """
        Keyword data per event:

        - MODEL_UPDATED: keys (changed field names), values (new values)
        - MODEL_LOADED, MODEL_SAVED: path
        - MODEL_RESET: model (copy of the fresh defaults)
        """
        ...
