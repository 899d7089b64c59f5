"""Alarm, arming and sensor type enumerations."""

from enum import Enum


class AlarmStatus(Enum):
    """Current escalation level of the alarm."""
    NO_ALARM = ("Cool and Good", (120, 170, 30))
    PENDING_ALARM = ("I'm in Danger...", (200, 150, 20))
    ALARM = ("Awooga!", (250, 80, 50))

    def __init__(self, description: str, color: tuple):
        self.description = description
        self.color = color


class ArmingStatus(Enum):
    """Operator-selected monitoring mode."""
    DISARMED = ("Disarmed", (120, 170, 30))
    ARMED_HOME = ("Armed - At Home", (190, 180, 50))
    ARMED_AWAY = ("Armed - Away", (170, 30, 150))

    def __init__(self, description: str, color: tuple):
        self.description = description
        self.color = color

    @property
    def is_armed(self) -> bool:
        return self is not ArmingStatus.DISARMED


class SensorType(Enum):
    """Kinds of binary detectors that can be registered."""
    DOOR = "door"
    WINDOW = "window"
    MOTION = "motion"
