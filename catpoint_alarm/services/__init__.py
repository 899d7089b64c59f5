"""Services for the alarm controller."""

from .interfaces import (
    StateStoreInterface,
    AnimalClassifierInterface,
    StatusListener
)
from .alarm_controller import AlarmController, PET_CONFIDENCE_THRESHOLD
from .state_store import InMemoryStateStore, SQLiteStateStore
from .animal_classifier import HaarCascadeCatClassifier, FakeAnimalClassifier

__all__ = [
    'StateStoreInterface',
    'AnimalClassifierInterface',
    'StatusListener',
    'AlarmController',
    'PET_CONFIDENCE_THRESHOLD',
    'InMemoryStateStore',
    'SQLiteStateStore',
    'HaarCascadeCatClassifier',
    'FakeAnimalClassifier'
]
