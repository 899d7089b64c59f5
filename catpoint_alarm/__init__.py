"""
Catpoint Alarm Controller

Home-monitoring alarm logic that reconciles door, window and motion sensors,
the arming mode and camera-based cat detection into a single alarm status.
"""

__version__ = "1.0.0"

# Import core components
from .config_manager import ConfigManager
from .exceptions import (
    AlarmControllerError,
    SensorNotFoundError,
    CollaboratorUnavailableError,
    InvalidInputError
)
from .models import (
    AlarmStatus,
    ArmingStatus,
    SensorType,
    Sensor,
    SystemConfig
)
from .services import (
    AlarmController,
    StateStoreInterface,
    AnimalClassifierInterface,
    StatusListener,
    InMemoryStateStore,
    SQLiteStateStore,
    HaarCascadeCatClassifier,
    FakeAnimalClassifier
)
from .alarm_system import create_alarm_controller
from . import utils

__all__ = [
    # Core management
    'ConfigManager',
    'AlarmController',
    'create_alarm_controller',

    # Errors
    'AlarmControllerError',
    'SensorNotFoundError',
    'CollaboratorUnavailableError',
    'InvalidInputError',

    # Data models
    'AlarmStatus',
    'ArmingStatus',
    'SensorType',
    'Sensor',
    'SystemConfig',

    # Collaborators
    'StateStoreInterface',
    'AnimalClassifierInterface',
    'StatusListener',
    'InMemoryStateStore',
    'SQLiteStateStore',
    'HaarCascadeCatClassifier',
    'FakeAnimalClassifier',

    # Utilities
    'utils'
]
