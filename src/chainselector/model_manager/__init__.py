"""Generic model management for Pydantic models.

- **ModelManagerService**: stateful get/set/update/reset/load/save with events
- **PydanticPersistence**: JSON load/save with backups
- **ObserverManager**: observer list with unsubscribe handles
- **ModelEvent** / **ModelObserver**: model lifecycle events
"""

from chainselector.model_manager.observer import ObserverManager, Unsubscribe
from chainselector.model_manager.persistence import PydanticPersistence
from chainselector.model_manager.protocols import ModelEvent, ModelObserver
from chainselector.model_manager.service import ModelManagerService

__all__ = [
    "ModelEvent",
    "ModelManagerService",
    "ModelObserver",
    "ObserverManager",
    "PydanticPersistence",
    "Unsubscribe",
]
