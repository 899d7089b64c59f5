"""Default configuration values and constants."""

from typing import Dict, Any

# Default system configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    # Decision policy
    "downgrade_alarm_on_deactivation": False,
    "escalate_while_disarmed": False,

    # State store
    "store_backend": "sqlite",
    "database_path": "data/alarm_state.db",

    # Classifier settings
    "classifier": "opencv",
    "cascade_path": "models/haarcascade_frontalcatface.xml",
    "scale_factor": 1.1,
    "min_neighbors": 3,

    # Logging
    "log_level": "INFO",
    "log_dir": ""
}

# System constants
SYSTEM_CONSTANTS = {
    "PET_CONFIDENCE_THRESHOLD": 0.5,  # Fixed threshold used by process_image
    "LOG_ROTATION_SIZE_MB": 10,
    "LOG_BACKUP_COUNT": 5
}

# File paths and directories
DEFAULT_PATHS = {
    "config_file": "config.json",
    "storage_dir": "data",
    "database_file": "data/alarm_state.db",
    "logs_dir": "logs"
}

VALID_STORE_BACKENDS = ("memory", "sqlite")
VALID_CLASSIFIERS = ("opencv", "fake")

# Haar cascade settings for the OpenCV classifier
CLASSIFIER_SETTINGS = {
    "builtin_cascades": [
        "haarcascade_frontalcatface.xml",
        "haarcascade_frontalcatface_extended.xml"
    ],
    "min_size": (30, 30),
    # Level weight at which a detection counts as fully confident
    "max_level_weight": 6.0
}
