"""Configuration data models."""

from dataclasses import dataclass


@dataclass
class SystemConfig:
    """System configuration settings."""
    # Decision policy
    downgrade_alarm_on_deactivation: bool = False
    escalate_while_disarmed: bool = False

    # State store
    store_backend: str = "sqlite"  # memory, sqlite
    database_path: str = "data/alarm_state.db"

    # Classifier settings
    classifier: str = "opencv"  # opencv, fake
    cascade_path: str = "models/haarcascade_frontalcatface.xml"
    scale_factor: float = 1.1
    min_neighbors: int = 3

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""
