"""Builds an alarm controller and its collaborators from configuration."""

from typing import Optional

from .models.config import SystemConfig
from .services.alarm_controller import AlarmController
from .services.animal_classifier import FakeAnimalClassifier, HaarCascadeCatClassifier
from .services.error_handler import ErrorHandler
from .services.interfaces import AnimalClassifierInterface, StateStoreInterface
from .services.state_store import InMemoryStateStore, SQLiteStateStore
from .exceptions import InvalidInputError
from .logging_config import get_logger

logger = get_logger("alarm_system")


def create_state_store(config: SystemConfig) -> StateStoreInterface:
    """Create the state store selected by ``config.store_backend``."""
    if config.store_backend == "memory":
        return InMemoryStateStore()
    if config.store_backend == "sqlite":
        return SQLiteStateStore(config.database_path)
    raise InvalidInputError(f"Unknown store backend: {config.store_backend}")


def create_animal_classifier(config: SystemConfig) -> AnimalClassifierInterface:
    """Create the classifier selected by ``config.classifier``."""
    if config.classifier == "opencv":
        return HaarCascadeCatClassifier(
            cascade_path=config.cascade_path,
            scale_factor=config.scale_factor,
            min_neighbors=config.min_neighbors
        )
    if config.classifier == "fake":
        return FakeAnimalClassifier()
    raise InvalidInputError(f"Unknown classifier: {config.classifier}")


def create_alarm_controller(config: Optional[SystemConfig] = None,
                            state_store: Optional[StateStoreInterface] = None,
                            animal_classifier: Optional[AnimalClassifierInterface] = None,
                            error_handler: Optional[ErrorHandler] = None) -> AlarmController:
    """Wire an AlarmController, building any collaborator not supplied."""
    config = config or SystemConfig()
    state_store = state_store or create_state_store(config)
    animal_classifier = animal_classifier or create_animal_classifier(config)

    logger.debug(f"Alarm controller created: store={type(state_store).__name__}, "
                 f"classifier={type(animal_classifier).__name__}")
    return AlarmController(state_store, animal_classifier, config, error_handler)
