"""Alarm controller: reconciles sensors, arming mode and pet detection."""

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set, Union

from ..config.defaults import SYSTEM_CONSTANTS
from ..exceptions import (
    AlarmControllerError,
    CollaboratorUnavailableError,
    InvalidInputError,
    SensorNotFoundError
)
from ..models.config import SystemConfig
from ..models.sensor import Sensor
from ..models.status import AlarmStatus, ArmingStatus
from ..utils import validate_image
from .error_handler import ErrorHandler, global_error_handler, with_error_handling
from .interfaces import AnimalClassifierInterface, StateStoreInterface, StatusListener
from ..logging_config import get_logger

logger = get_logger("alarm_controller")

PET_CONFIDENCE_THRESHOLD = SYSTEM_CONSTANTS["PET_CONFIDENCE_THRESHOLD"]


@contextmanager
def _collaborator(name: str) -> Iterator[None]:
    """Surface any unexpected collaborator failure as CollaboratorUnavailableError."""
    try:
        yield
    except AlarmControllerError:
        raise
    except Exception as e:
        raise CollaboratorUnavailableError(name, str(e)) from e


class AlarmController:
    """Decides the alarm status from sensor, arming and image events.

    The controller holds no canonical state of its own. Every operation reads
    the state store, decides, and writes its results inside one store
    transaction, so either all of an operation's writes land or none do.
    Operations are serialized with a re-entrant lock.
    """

    def __init__(self,
                 state_store: StateStoreInterface,
                 animal_classifier: AnimalClassifierInterface,
                 config: Optional[SystemConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.state_store = state_store
        self.animal_classifier = animal_classifier
        self.config = config or SystemConfig()
        self.error_handler = error_handler or global_error_handler
        self._status_listeners: List[StatusListener] = []
        self._lock = threading.RLock()

        self.error_handler.register_component("alarm_controller")

    # Listeners

    def add_status_listener(self, listener: StatusListener) -> None:
        """Register an observer for status changes."""
        if listener not in self._status_listeners:
            self._status_listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        """Unregister an observer."""
        if listener in self._status_listeners:
            self._status_listeners.remove(listener)

    def _notify(self, method: str, *args) -> None:
        for listener in list(self._status_listeners):
            try:
                getattr(listener, method)(*args)
            except Exception as e:
                logger.error(f"Error in status listener {listener!r}.{method}: {e}", exc_info=True)

    # Read accessors

    def get_alarm_status(self) -> AlarmStatus:
        with _collaborator("state store"):
            return self.state_store.get_alarm_status()

    def get_arming_status(self) -> ArmingStatus:
        with _collaborator("state store"):
            return self.state_store.get_arming_status()

    def is_pet_detected(self) -> bool:
        with _collaborator("state store"):
            return self.state_store.get_pet_detected()

    def get_sensors(self) -> Set[Sensor]:
        with _collaborator("state store"):
            return self.state_store.get_sensors()

    # Operations

    @with_error_handling("alarm_controller")
    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """Change the arming mode.

        Disarming clears the alarm. Arming resets every sensor to inactive,
        and arming at home while a pet is already detected raises the alarm.
        """
        if not isinstance(arming_status, ArmingStatus):
            raise InvalidInputError(f"Not an arming status: {arming_status!r}")

        with self._lock:
            new_alarm_status = None
            reset_sensors: Set[Sensor] = set()

            with _collaborator("state store"):
                if arming_status is ArmingStatus.DISARMED:
                    new_alarm_status = AlarmStatus.NO_ALARM
                else:
                    reset_sensors = self.state_store.get_sensors()
                    if (arming_status is ArmingStatus.ARMED_HOME
                            and self.state_store.get_pet_detected()):
                        new_alarm_status = AlarmStatus.ALARM

                with self.state_store.transaction():
                    self.state_store.set_arming_status(arming_status)
                    for sensor in reset_sensors:
                        sensor.active = False
                        self.state_store.update_sensor(sensor)
                    if new_alarm_status is not None:
                        self.state_store.set_alarm_status(new_alarm_status)

            logger.info(f"Arming status set to {arming_status.name}")
            if reset_sensors:
                logger.debug(f"Reset {len(reset_sensors)} sensors to inactive")
                self._notify("sensor_status_changed")
            if new_alarm_status is not None:
                self._alarm_written("arming", new_alarm_status, arming_status=arming_status.name)

    @with_error_handling("alarm_controller")
    def change_sensor_activation_status(self, sensor: Union[Sensor, str], active: bool) -> None:
        """Record a sensor activation change and escalate or de-escalate the alarm.

        Escalation moves one level per activation. De-escalation only
        happens from PENDING_ALARM once no other sensor is active. ALARM is
        sticky unless ``downgrade_alarm_on_deactivation`` is enabled.
        """
        name = sensor.name if isinstance(sensor, Sensor) else sensor
        active = bool(active)

        with self._lock:
            with _collaborator("state store"):
                stored = self.state_store.get_sensor(name)
                if stored is None:
                    raise SensorNotFoundError(name)

                current = self.state_store.get_alarm_status()
                arming_status = self.state_store.get_arming_status()
                others_active = any(
                    s.active for s in self.state_store.get_sensors() if s.name != name
                )
                new_alarm_status = self._sensor_transition(
                    current, arming_status, active, others_active
                )

                stored.active = active
                with self.state_store.transaction():
                    self.state_store.update_sensor(stored)
                    if new_alarm_status is not None:
                        self.state_store.set_alarm_status(new_alarm_status)

            if isinstance(sensor, Sensor):
                sensor.active = active

            logger.debug(f"Sensor {name} set {'active' if active else 'inactive'}")
            self._notify("sensor_status_changed")
            if new_alarm_status is not None:
                self._alarm_written("sensor", new_alarm_status, sensor=name,
                                    previous=current.name)

    def _sensor_transition(self, current: AlarmStatus, arming_status: ArmingStatus,
                           active: bool, others_active: bool) -> Optional[AlarmStatus]:
        """Return the alarm status a sensor change produces, or None for no change."""
        if not arming_status.is_armed and not self.config.escalate_while_disarmed:
            return None

        if active:
            if current is AlarmStatus.NO_ALARM:
                return AlarmStatus.PENDING_ALARM
            if current is AlarmStatus.PENDING_ALARM:
                return AlarmStatus.ALARM
            return None

        if current is AlarmStatus.PENDING_ALARM and not others_active:
            return AlarmStatus.NO_ALARM
        if (current is AlarmStatus.ALARM and others_active
                and self.config.downgrade_alarm_on_deactivation):
            return AlarmStatus.PENDING_ALARM
        return None

    @with_error_handling("alarm_controller")
    def process_image(self, image) -> bool:
        """Classify an image for a pet and update the alarm accordingly.

        Returns whether a pet was detected.
        """
        validate_image(image)

        with self._lock:
            with _collaborator("animal classifier"):
                detected = bool(self.animal_classifier.image_contains_animal(
                    image, PET_CONFIDENCE_THRESHOLD
                ))

            with _collaborator("state store"):
                arming_status = self.state_store.get_arming_status()
                if detected and arming_status.is_armed:
                    new_alarm_status = AlarmStatus.ALARM
                elif not any(s.active for s in self.state_store.get_sensors()):
                    new_alarm_status = AlarmStatus.NO_ALARM
                else:
                    # A tripped sensor is not cleared by an empty frame
                    new_alarm_status = None

                with self.state_store.transaction():
                    self.state_store.set_pet_detected(detected)
                    if new_alarm_status is not None:
                        self.state_store.set_alarm_status(new_alarm_status)

            logger.info(f"Image processed: pet_detected={detected}")
            self._notify("pet_detected", detected)
            if new_alarm_status is not None:
                self._alarm_written("image", new_alarm_status, pet_detected=detected,
                                    arming_status=arming_status.name)
            return detected

    def _alarm_written(self, event: str, alarm_status: AlarmStatus, **context) -> None:
        context["event"] = event
        context["alarm_status"] = alarm_status.name
        logger.info(f"Alarm status set to {alarm_status.name} by {event} event",
                    extra={"context": context})
        self._notify("notify", alarm_status)
