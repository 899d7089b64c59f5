"""Error tracking for controller components."""

import functools
import threading
import traceback
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import (
    AlarmControllerError,
    CollaboratorUnavailableError,
    InvalidInputError,
    SensorNotFoundError
)
from ..logging_config import get_logger

logger = get_logger("error_handler")


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComponentStatus(Enum):
    """Component status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class ErrorRecord:
    """Record of an error occurrence."""
    component_name: str
    error: Exception
    severity: ErrorSeverity
    timestamp: datetime = field(default_factory=datetime.now)
    traceback_str: str = ""


def classify_severity(error: Exception) -> ErrorSeverity:
    """Map a controller exception onto a severity level.

    Caller mistakes are low severity; an unreachable collaborator is high.
    """
    if isinstance(error, (InvalidInputError, SensorNotFoundError)):
        return ErrorSeverity.LOW
    if isinstance(error, CollaboratorUnavailableError):
        return ErrorSeverity.HIGH
    if isinstance(error, AlarmControllerError):
        return ErrorSeverity.MEDIUM
    return ErrorSeverity.CRITICAL


class ErrorHandler:
    """Records errors per component and tracks component health.

    The handler never retries and never suppresses: callers still receive
    every exception.
    """

    def __init__(self, max_error_history: int = 500):
        self.max_error_history = max_error_history
        self.error_records: List[ErrorRecord] = []
        self.component_error_counts: Dict[str, int] = {}
        self.component_status: Dict[str, ComponentStatus] = {}
        self._lock = threading.Lock()

    def register_component(self, component_name: str) -> None:
        """Register a component for error tracking."""
        with self._lock:
            self.component_error_counts.setdefault(component_name, 0)
            self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)
        logger.debug(f"Component registered: {component_name}")

    def handle_error(self, component_name: str, error: Exception,
                     severity: Optional[ErrorSeverity] = None) -> ErrorRecord:
        """Record an error raised by a component."""
        severity = severity or classify_severity(error)
        error_record = ErrorRecord(
            component_name=component_name,
            error=error,
            severity=severity,
            traceback_str=traceback.format_exc()
        )

        with self._lock:
            self.error_records.append(error_record)
            if len(self.error_records) > self.max_error_history:
                self.error_records = self.error_records[-self.max_error_history:]

            self.component_error_counts[component_name] = \
                self.component_error_counts.get(component_name, 0) + 1

            if severity == ErrorSeverity.CRITICAL:
                self.component_status[component_name] = ComponentStatus.FAILED
            elif severity == ErrorSeverity.HIGH:
                self.component_status[component_name] = ComponentStatus.DEGRADED
            else:
                self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)

        if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.error(f"Error in {component_name}: {error} (Severity: {severity.value})")
        else:
            logger.warning(f"Error in {component_name}: {error} (Severity: {severity.value})")

        return error_record

    def mark_healthy(self, component_name: str) -> None:
        """Mark a component healthy after a successful call."""
        with self._lock:
            if self.component_status.get(component_name) == ComponentStatus.DEGRADED:
                logger.info(f"Component recovered: {component_name}")
            self.component_status[component_name] = ComponentStatus.HEALTHY

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        with self._lock:
            return {
                "total_errors": len(self.error_records),
                "component_error_counts": dict(self.component_error_counts),
                "component_status": {
                    name: status.value for name, status in self.component_status.items()
                }
            }

    def reset_error_counts(self, component_name: Optional[str] = None) -> None:
        """Reset error counts for a component or all components."""
        with self._lock:
            names = [component_name] if component_name else list(self.component_error_counts)
            for name in names:
                self.component_error_counts[name] = 0
                self.component_status[name] = ComponentStatus.HEALTHY

    def get_component_health(self) -> Dict[str, ComponentStatus]:
        """Get health status of all registered components."""
        with self._lock:
            return dict(self.component_status)

    def get_error_summary(self, hours: int = 24) -> Dict[str, Any]:
        """Get summary of errors in the last N hours."""
        cutoff_time = datetime.now() - timedelta(hours=hours)

        with self._lock:
            recent_errors = [e for e in self.error_records if e.timestamp >= cutoff_time]

        component_counts: Dict[str, int] = {}
        severity_counts = {severity.value: 0 for severity in ErrorSeverity}

        for error in recent_errors:
            component_counts[error.component_name] = component_counts.get(error.component_name, 0) + 1
            severity_counts[error.severity.value] += 1

        return {
            "total_errors": len(recent_errors),
            "component_counts": component_counts,
            "severity_counts": severity_counts,
            "time_period_hours": hours
        }


global_error_handler = ErrorHandler()


def with_error_handling(component_name: str, severity: Optional[ErrorSeverity] = None,
                        error_handler: Optional[ErrorHandler] = None):
    """Decorator that records failures with the error handler and re-raises them.

    Methods of objects exposing an ``error_handler`` attribute report to that
    handler; everything else reports to ``global_error_handler``.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            handler = error_handler
            if handler is None and args:
                handler = getattr(args[0], "error_handler", None)
            handler = handler or global_error_handler

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                handler.handle_error(component_name, e, severity)
                raise
            handler.mark_healthy(component_name)
            return result
        return wrapper
    return decorator
