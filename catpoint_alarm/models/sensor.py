"""Sensor data model."""

from dataclasses import dataclass

from .status import SensorType


@dataclass(eq=False)
class Sensor:
    """A door, window or motion detector known to the state store.

    Sensors are identified by name; two instances with the same name refer
    to the same physical sensor regardless of their ``active`` flag.
    """
    name: str
    sensor_type: SensorType
    active: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def copy(self) -> "Sensor":
        """Return a detached copy of this sensor."""
        return Sensor(self.name, self.sensor_type, self.active)
