"""Thread-safe holder for the application config with change notification."""

import logging
from pathlib import Path
from threading import Lock
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from chainselector.model_manager.observer import ObserverManager, Unsubscribe
from chainselector.model_manager.persistence import PydanticPersistence
from chainselector.model_manager.protocols import ModelEvent, ModelObserver

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class ModelManagerService(Generic[ModelType]):
    """
    Owns one Pydantic model (in practice AppConfig) and the file behind it.

    The orchestrator reads ports and the remembered rack/chain/pads from
    here at startup and writes them back as they change. Each change
    re-validates the whole model, so a bad value never lands half-applied.
    Observers hear about changes after the lock is released.

    Usage Example:
        ```python
        service = ModelManagerService[AppConfig](AppConfig, AppConfig.load_or_default(), default_path=path)
        service.update({"selected_track_id": 2, "selected_device_id": 0})
        service.save()
        ```
    """

    def __init__(
        self,
        model_type: type[ModelType],
        initial_model: ModelType,
        default_path: Path | None = None,
    ):
        """
        Args:
            model_type: Model class used for validation and reset
            initial_model: Starting value
            default_path: File used by load()/save() when no path is passed
        """
        self._model_type = model_type
        self._model = initial_model
        self._default_path = default_path
        self._lock = Lock()
        self._observers = ObserverManager[ModelObserver](observer_type_name="model")

        logger.debug(f"Managing {model_type.__name__} (file: {default_path})")

    @property
    def default_path(self) -> Path | None:
        return self._default_path

    def register_observer(self, observer: ModelObserver) -> Unsubscribe:
        """Subscribe to ModelEvent notifications; returns the unsubscribe handle."""
        return self._observers.register(observer)

    def _emit(self, event: ModelEvent, **kwargs: Any) -> None:
        self._observers.notify("on_model_event", event, **kwargs)

    # Reading

    def get(self, key: str, default: Any = None) -> Any:
        """Current value of field ``key``, or ``default`` when there is no such field."""
        with self._lock:
            return getattr(self._model, key, default)

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return self._model.model_dump()

    def get_model(self) -> ModelType:
        """Deep copy; mutating it does not affect the managed model."""
        with self._lock:
            return self._model.model_copy(deep=True)

    # Writing

    def set(self, key: str, value: Any) -> None:
        """Shorthand for ``update({key: value})``."""
        self.update({key: value})

    def update(self, values: dict[str, Any]) -> None:
        """
        Apply several field changes together.

        Raises:
            AttributeError: A key is not a field of the model
            ValidationError: The resulting model does not validate; nothing changes

        Events:
            One MODEL_UPDATED with ``keys`` and ``values``
        """
        with self._lock:
            unknown = [key for key in values if key not in self._model_type.model_fields]
            if unknown:
                raise AttributeError(f"'{self._model_type.__name__}' has no field '{unknown[0]}'")

            # assignment on the instance would skip validation
            merged = {**self._model.model_dump(), **values}
            try:
                self._model = self._model_type.model_validate(merged)
            except ValidationError as e:
                logger.error(f"Rejected update of {sorted(values)}: {e}")
                raise

        logger.debug(f"Config changed: {values}")
        self._emit(ModelEvent.MODEL_UPDATED, keys=list(values), values=values)

    def reset(self) -> None:
        """Replace the model with a default instance (MODEL_RESET)."""
        with self._lock:
            self._model = self._model_type()
            fresh = self._model.model_copy(deep=True)

        logger.info(f"{self._model_type.__name__} reset to defaults")
        self._emit(ModelEvent.MODEL_RESET, model=fresh)

    # Files

    def _resolve(self, path: Path | None) -> Path:
        chosen = path or self._default_path
        if chosen is None:
            raise ValueError("No path given and the service has no default_path")
        return Path(chosen)

    def load(self, path: Path | None = None) -> None:
        """
        Replace the model with the contents of ``path`` (MODEL_LOADED).

        Raises:
            ValueError: No path and no default_path
            FileNotFoundError: The file is missing
            ConfigurationError: The file is invalid
        """
        file_path = self._resolve(path)
        loaded = PydanticPersistence.load_json(file_path, self._model_type)

        with self._lock:
            self._model = loaded

        logger.info(f"Config loaded from {file_path}")
        self._emit(ModelEvent.MODEL_LOADED, path=file_path)

    def save(self, path: Path | None = None) -> None:
        """
        Write the model to ``path`` (MODEL_SAVED).

        Raises:
            ValueError: No path and no default_path
        """
        file_path = self._resolve(path)

        with self._lock:
            snapshot = self._model.model_copy(deep=True)

        PydanticPersistence.save_json(snapshot, file_path)

        logger.debug(f"Config saved to {file_path}")
        self._emit(ModelEvent.MODEL_SAVED, path=file_path)
