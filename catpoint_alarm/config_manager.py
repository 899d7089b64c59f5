"""Configuration management with JSON file persistence."""

import json
import os
from dataclasses import asdict, fields
from typing import Optional, Dict, Any, Callable, List

from .models.config import SystemConfig
from .config.defaults import DEFAULT_CONFIG, DEFAULT_PATHS, VALID_CLASSIFIERS, VALID_STORE_BACKENDS
from .logging_config import get_logger

logger = get_logger("config_manager")


class ConfigManager:
    """Manages system configuration with file persistence and change callbacks."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self._config: Optional[SystemConfig] = None
        self._config_change_callbacks: List[Callable[[SystemConfig], None]] = []

        self.load_config()

    def load_config(self) -> SystemConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config_dict = json.load(f)
                self._config = SystemConfig(**config_dict)
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Error loading config: {e}. Using defaults.")
                self._config = SystemConfig()
        else:
            self._config = SystemConfig()
            self.save_config()

        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            return

        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.config_path, 'w') as f:
            json.dump(asdict(self._config), f, indent=2)

    def get_config(self) -> SystemConfig:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values."""
        if self._config is None:
            self.load_config()

        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

        self.save_config()
        self._notify_callbacks()

    def validate_config(self) -> bool:
        """Validate current configuration."""
        if self._config is None:
            return False

        # Validate policy flags
        if not (isinstance(self._config.downgrade_alarm_on_deactivation, bool) and
                isinstance(self._config.escalate_while_disarmed, bool)):
            return False

        # Validate store settings
        if self._config.store_backend not in VALID_STORE_BACKENDS:
            return False
        if self._config.store_backend == "sqlite" and not self._config.database_path:
            return False

        # Validate classifier settings
        if self._config.classifier not in VALID_CLASSIFIERS:
            return False
        if not isinstance(self._config.scale_factor, (int, float)) or \
                not isinstance(self._config.min_neighbors, int):
            return False
        if self._config.scale_factor <= 1.0 or self._config.min_neighbors < 0:
            return False

        # Validate logging
        if str(self._config.log_level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return False

        return True

    def register_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        """Register a callback invoked after every configuration change."""
        if callback not in self._config_change_callbacks:
            self._config_change_callbacks.append(callback)

    def unregister_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        """Unregister a configuration change callback."""
        if callback in self._config_change_callbacks:
            self._config_change_callbacks.remove(callback)

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults and save."""
        self._config = SystemConfig(**DEFAULT_CONFIG)
        self.save_config()
        self._notify_callbacks()

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as a dictionary."""
        return asdict(self.get_config())

    def import_config(self, config_dict: Dict[str, Any]) -> bool:
        """Import configuration values, keeping the old ones if the result is invalid."""
        known = {f.name for f in fields(SystemConfig)}
        old_config = self._config
        merged = asdict(self.get_config())
        merged.update({k: v for k, v in config_dict.items() if k in known})

        self._config = SystemConfig(**merged)
        if not self.validate_config():
            logger.error("Imported configuration is invalid; keeping previous values")
            self._config = old_config
            return False

        self.save_config()
        self._notify_callbacks()
        return True

    def _notify_callbacks(self) -> None:
        for callback in self._config_change_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")
