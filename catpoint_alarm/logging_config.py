"""Centralized logging configuration for the alarm controller."""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional, Dict, Any
from pathlib import Path

from .config.defaults import SYSTEM_CONSTANTS


class StructuredFormatter(logging.Formatter):
    """Custom formatter that adds structured information to log records."""

    def __init__(self, include_context: bool = True):
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured information."""
        base_format = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"

        if self.include_context and hasattr(record, 'context'):
            # Escape % so context values are not treated as format fields
            context_str = " | ".join(
                [f"{k}={v}" for k, v in record.context.items()]
            ).replace("%", "%%")
            base_format += f" | Context: {context_str}"

        if record.levelno >= logging.ERROR and record.exc_info:
            base_format += " | %(pathname)s:%(lineno)d"

        formatter = logging.Formatter(base_format)
        return formatter.format(record)


class ContextFilter(logging.Filter):
    """Filter that adds system context to log records."""

    def __init__(self, component_name: Optional[str] = None):
        super().__init__()
        self.component_name = component_name
        self.process_id = os.getpid()

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context information to log record."""
        record.process_id = self.process_id

        if self.component_name:
            record.component = self.component_name

        return True


class LoggingManager:
    """Centralized logging management for the alarm controller.

    Logs always go to the console. When ``log_dir`` is given, a rotating
    main log and a rotating error-only log are written there as well.
    """

    def __init__(self, log_dir: Optional[str] = None, log_level: int = logging.INFO):
        self.log_dir = Path(log_dir) if log_dir else None
        self.log_level = log_level
        self.max_log_size = SYSTEM_CONSTANTS["LOG_ROTATION_SIZE_MB"] * 1024 * 1024
        self.backup_count = SYSTEM_CONSTANTS["LOG_BACKUP_COUNT"]

        self.main_log_file = None
        self.error_log_file = None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.main_log_file = self.log_dir / "catpoint_alarm.log"
            self.error_log_file = self.log_dir / "errors.log"

        self.component_loggers: Dict[str, logging.Logger] = {}
        self._handlers: list = []

        self._setup_package_logger()

    def _setup_package_logger(self) -> None:
        """Attach handlers to the package logger."""
        package_logger = logging.getLogger("catpoint_alarm")
        package_logger.setLevel(self.log_level)

        # Only remove handlers this manager type installed
        for handler in list(package_logger.handlers):
            if getattr(handler, "_catpoint_managed", False):
                package_logger.removeHandler(handler)
                handler.close()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(StructuredFormatter(include_context=False))
        self._add_handler(package_logger, console_handler)

        if self.main_log_file is not None:
            main_file_handler = logging.handlers.RotatingFileHandler(
                self.main_log_file,
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            main_file_handler.setLevel(logging.DEBUG)
            main_file_handler.setFormatter(StructuredFormatter(include_context=True))
            self._add_handler(package_logger, main_file_handler)

            error_file_handler = logging.handlers.RotatingFileHandler(
                self.error_log_file,
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(StructuredFormatter(include_context=True))
            self._add_handler(package_logger, error_file_handler)

    def _add_handler(self, logger: logging.Logger, handler: logging.Handler) -> None:
        handler._catpoint_managed = True
        logger.addHandler(handler)
        self._handlers.append(handler)

    def get_component_logger(self, component_name: str,
                             log_level: Optional[int] = None) -> logging.Logger:
        """Get or create a logger for a specific component."""
        if component_name in self.component_loggers:
            return self.component_loggers[component_name]

        logger = logging.getLogger(f"catpoint_alarm.{component_name}")

        if log_level:
            logger.setLevel(log_level)

        logger.addFilter(ContextFilter(component_name))

        self.component_loggers[component_name] = logger
        return logger

    def get_log_stats(self) -> Dict[str, Any]:
        """Get logging statistics."""
        stats = {
            "log_directory": str(self.log_dir) if self.log_dir else None,
            "log_files": {},
            "active_loggers": list(self.component_loggers.keys()),
            "log_level": logging.getLevelName(self.log_level)
        }

        for log_file in [self.main_log_file, self.error_log_file]:
            if log_file is not None and log_file.exists():
                stats["log_files"][log_file.name] = {
                    "size_mb": log_file.stat().st_size / (1024 * 1024),
                    "modified": datetime.fromtimestamp(log_file.stat().st_mtime).isoformat()
                }

        return stats

    def close(self) -> None:
        """Detach and close the handlers installed by this manager."""
        package_logger = logging.getLogger("catpoint_alarm")
        for handler in self._handlers:
            package_logger.removeHandler(handler)
            handler.close()
        self._handlers = []


logging_manager: Optional[LoggingManager] = None


def get_logger(component_name: str) -> logging.Logger:
    """Convenience function to get a component logger."""
    if logging_manager is not None:
        return logging_manager.get_component_logger(component_name)
    return logging.getLogger(f"catpoint_alarm.{component_name}")


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> LoggingManager:
    """Setup centralized logging system."""
    global logging_manager

    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)

    if logging_manager is not None:
        logging_manager.close()

    logging_manager = LoggingManager(log_dir or None, numeric_level)
    return logging_manager
