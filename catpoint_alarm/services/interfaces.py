"""Service interfaces and abstract base classes."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional, Set

import numpy as np

from ..models.sensor import Sensor
from ..models.status import AlarmStatus, ArmingStatus

NDArray = np.ndarray


class StateStoreInterface(ABC):
    """Interface for the key/value holder of alarm state and sensors."""

    @abstractmethod
    def get_alarm_status(self) -> AlarmStatus:
        """Get the current alarm status."""
        pass

    @abstractmethod
    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        """Persist the alarm status."""
        pass

    @abstractmethod
    def get_arming_status(self) -> ArmingStatus:
        """Get the current arming status."""
        pass

    @abstractmethod
    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """Persist the arming status."""
        pass

    @abstractmethod
    def get_pet_detected(self) -> bool:
        """Get the most recent image analysis result."""
        pass

    @abstractmethod
    def set_pet_detected(self, detected: bool) -> None:
        """Persist the most recent image analysis result."""
        pass

    @abstractmethod
    def add_sensor(self, sensor: Sensor) -> None:
        """Register a sensor."""
        pass

    @abstractmethod
    def remove_sensor(self, sensor: Sensor) -> None:
        """Unregister a sensor."""
        pass

    @abstractmethod
    def update_sensor(self, sensor: Sensor) -> None:
        """Persist a registered sensor's current flag."""
        pass

    @abstractmethod
    def get_sensors(self) -> Set[Sensor]:
        """Get all registered sensors."""
        pass

    def get_sensor(self, name: str) -> Optional[Sensor]:
        """Get a registered sensor by name."""
        for sensor in self.get_sensors():
            if sensor.name == name:
                return sensor
        return None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes so they are applied together or not at all.

        Stores without transactional support apply writes immediately.
        """
        yield


class AnimalClassifierInterface(ABC):
    """Interface for image-based animal detection."""

    @abstractmethod
    def image_contains_animal(self, image: NDArray, confidence_threshold: float) -> bool:
        """Report whether the image contains the target animal.

        ``confidence_threshold`` is a fraction in [0, 1].
        """
        pass


class StatusListener:
    """Observer for controller state changes. Override what you need."""

    def notify(self, alarm_status: AlarmStatus) -> None:
        """Called after the alarm status is written."""
        pass

    def pet_detected(self, detected: bool) -> None:
        """Called after an image has been processed."""
        pass

    def sensor_status_changed(self) -> None:
        """Called after one or more sensor flags were written."""
        pass
