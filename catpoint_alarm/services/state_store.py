"""State store implementations: in-memory and SQLite-backed."""

import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Set

from ..exceptions import CollaboratorUnavailableError, SensorNotFoundError
from ..models.sensor import Sensor
from ..models.status import AlarmStatus, ArmingStatus, SensorType
from ..utils import ensure_directory_exists
from .interfaces import StateStoreInterface
from ..logging_config import get_logger

logger = get_logger("state_store")


class InMemoryStateStore(StateStoreInterface):
    """State store holding everything in process memory.

    Sensors are copied on the way in and out so callers never share
    instances with the store.
    """

    def __init__(self,
                 alarm_status: AlarmStatus = AlarmStatus.NO_ALARM,
                 arming_status: ArmingStatus = ArmingStatus.DISARMED,
                 pet_detected: bool = False):
        self._alarm_status = alarm_status
        self._arming_status = arming_status
        self._pet_detected = pet_detected
        self._sensors: Dict[str, Sensor] = {}
        self._lock = threading.RLock()

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self._alarm_status = alarm_status

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self._arming_status = arming_status

    def get_pet_detected(self) -> bool:
        return self._pet_detected

    def set_pet_detected(self, detected: bool) -> None:
        self._pet_detected = bool(detected)

    def add_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._sensors[sensor.name] = sensor.copy()

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._sensors.pop(sensor.name, None)

    def update_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            if sensor.name not in self._sensors:
                raise SensorNotFoundError(sensor.name)
            self._sensors[sensor.name] = sensor.copy()

    def get_sensors(self) -> Set[Sensor]:
        with self._lock:
            return {sensor.copy() for sensor in self._sensors.values()}

    def get_sensor(self, name: str) -> Optional[Sensor]:
        with self._lock:
            sensor = self._sensors.get(name)
            return sensor.copy() if sensor is not None else None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Snapshot state and restore it if the block raises."""
        with self._lock:
            snapshot = (
                self._alarm_status,
                self._arming_status,
                self._pet_detected,
                {name: sensor.copy() for name, sensor in self._sensors.items()}
            )
            try:
                yield
            except BaseException:
                (self._alarm_status, self._arming_status,
                 self._pet_detected, self._sensors) = snapshot
                raise


class SQLiteStateStore(StateStoreInterface):
    """State store persisted in a single SQLite database file."""

    def __init__(self, database_path: str = "data/alarm_state.db"):
        """
        Initialize the SQLite state store.

        Args:
            database_path: Path to SQLite database file, or ":memory:"
        """
        self.database_path = database_path
        self._lock = threading.RLock()
        self._transaction_depth = 0

        if database_path != ":memory:":
            directory = os.path.dirname(database_path)
            if directory:
                ensure_directory_exists(directory)

        try:
            self._conn = sqlite3.connect(database_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise CollaboratorUnavailableError("state store", str(e)) from e

        self._initialize_database()

    def _initialize_database(self) -> None:
        """Initialize SQLite database with status and sensor tables."""
        with self._guard():
            cursor = self._conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS status (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sensors (
                    name TEXT PRIMARY KEY,
                    sensor_type TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 0
                )
            """)

            for key, value in (
                ("alarm_status", AlarmStatus.NO_ALARM.name),
                ("arming_status", ArmingStatus.DISARMED.name),
                ("pet_detected", "0"),
            ):
                cursor.execute(
                    "INSERT OR IGNORE INTO status (key, value) VALUES (?, ?)",
                    (key, value)
                )

        logger.debug(f"State store initialized: {self.database_path}")

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Serialize access, commit outside transactions and translate errors."""
        with self._lock:
            try:
                yield
                if self._transaction_depth == 0:
                    self._conn.commit()
            except sqlite3.Error as e:
                if self._transaction_depth == 0:
                    self._rollback()
                logger.error(f"State store operation failed: {e}")
                raise CollaboratorUnavailableError("state store", str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Apply all writes in the block as one SQLite transaction."""
        with self._lock:
            self._transaction_depth += 1
            try:
                yield
            except BaseException:
                self._transaction_depth -= 1
                if self._transaction_depth == 0:
                    self._rollback()
                raise
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                try:
                    self._conn.commit()
                except sqlite3.Error as e:
                    self._rollback()
                    raise CollaboratorUnavailableError("state store", str(e)) from e

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except sqlite3.Error as e:
            logger.warning(f"State store rollback failed: {e}")

    def _get_value(self, key: str) -> str:
        with self._guard():
            row = self._conn.execute(
                "SELECT value FROM status WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            raise CollaboratorUnavailableError("state store", f"missing status key {key}")
        return row[0]

    def _set_value(self, key: str, value: str) -> None:
        with self._guard():
            self._conn.execute(
                "INSERT OR REPLACE INTO status (key, value) VALUES (?, ?)",
                (key, value)
            )

    def get_alarm_status(self) -> AlarmStatus:
        return AlarmStatus[self._get_value("alarm_status")]

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self._set_value("alarm_status", alarm_status.name)

    def get_arming_status(self) -> ArmingStatus:
        return ArmingStatus[self._get_value("arming_status")]

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self._set_value("arming_status", arming_status.name)

    def get_pet_detected(self) -> bool:
        return self._get_value("pet_detected") == "1"

    def set_pet_detected(self, detected: bool) -> None:
        self._set_value("pet_detected", "1" if detected else "0")

    def add_sensor(self, sensor: Sensor) -> None:
        with self._guard():
            self._conn.execute(
                "INSERT OR REPLACE INTO sensors (name, sensor_type, active) VALUES (?, ?, ?)",
                (sensor.name, sensor.sensor_type.name, int(sensor.active))
            )
        logger.info(f"Sensor added: {sensor.name} ({sensor.sensor_type.value})")

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._guard():
            self._conn.execute("DELETE FROM sensors WHERE name = ?", (sensor.name,))
        logger.info(f"Sensor removed: {sensor.name}")

    def update_sensor(self, sensor: Sensor) -> None:
        with self._guard():
            cursor = self._conn.execute(
                "UPDATE sensors SET sensor_type = ?, active = ? WHERE name = ?",
                (sensor.sensor_type.name, int(sensor.active), sensor.name)
            )
            updated = cursor.rowcount
        if updated == 0:
            raise SensorNotFoundError(sensor.name)

    def get_sensors(self) -> Set[Sensor]:
        with self._guard():
            rows = self._conn.execute(
                "SELECT name, sensor_type, active FROM sensors"
            ).fetchall()
        return {self._row_to_sensor(row) for row in rows}

    def get_sensor(self, name: str) -> Optional[Sensor]:
        with self._guard():
            row = self._conn.execute(
                "SELECT name, sensor_type, active FROM sensors WHERE name = ?", (name,)
            ).fetchone()
        return self._row_to_sensor(row) if row is not None else None

    @staticmethod
    def _row_to_sensor(row) -> Sensor:
        name, sensor_type, active = row
        return Sensor(name=name, sensor_type=SensorType[sensor_type], active=bool(active))

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SQLiteStateStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
