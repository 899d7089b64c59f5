"""Exceptions raised by the alarm controller and its collaborators."""


class AlarmControllerError(Exception):
    """Base class for all alarm controller failures."""


class SensorNotFoundError(AlarmControllerError, LookupError):
    """The referenced sensor is not registered with the state store."""

    def __init__(self, sensor_name: str):
        super().__init__(f"Sensor not registered: {sensor_name}")
        self.sensor_name = sensor_name


class CollaboratorUnavailableError(AlarmControllerError):
    """The state store or the animal classifier could not complete a call."""

    def __init__(self, collaborator: str, message: str = ""):
        detail = f": {message}" if message else ""
        super().__init__(f"{collaborator} unavailable{detail}")
        self.collaborator = collaborator


class InvalidInputError(AlarmControllerError, ValueError):
    """An image or threshold passed to the controller is malformed."""
