"""Data models for the alarm controller."""

from .status import AlarmStatus, ArmingStatus, SensorType
from .sensor import Sensor
from .config import SystemConfig

__all__ = ['AlarmStatus', 'ArmingStatus', 'SensorType', 'Sensor', 'SystemConfig']
