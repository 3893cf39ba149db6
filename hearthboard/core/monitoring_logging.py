"""Structured monitoring logging for Hearthboard.

Emits one JSON document per operational event with a consistent field schema
so fetch attempts, pipeline outcomes and server lifecycle can be followed in
journald or any log shipper.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, Optional

# Global logger cache
_logger_cache: dict[str, MonitoringLogger] = {}

SCHEMA_VERSION = "1.0"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class LogEntry:
    """Structured log entry with consistent schema."""

    def __init__(
        self,
        component: str,
        level: str,
        event: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize log entry.

        Args:
            component: Component name (fetcher|pipeline|server|weather|kiosk)
            level: Log level (DEBUG|INFO|WARN|ERROR|CRITICAL)
            event: Short event code (e.g., "feed.fetch.attempt")
            message: Human readable description
            details: Additional context data
        """
        self.timestamp = datetime.now(UTC)
        self.component = component
        self.level = level.upper()
        self.event = event
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary following the standard schema."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "component": self.component,
            "level": self.level,
            "event": self.event,
            "message": self.message,
            "details": self.details,
            "schema_version": SCHEMA_VERSION,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str)


class MonitoringLogger:
    """Monitoring logger with structured JSON output.

    This logger has no exception() method. Inside exception handlers use the
    module's standard logger for the traceback and this logger for the
    structured event.
    """

    def __init__(self, name: str, component: str, level: str = "INFO", stream: bool = True):
        """Initialize monitoring logger.

        Args:
            name: Logger name
            component: Component identifier
            level: Default log level
            stream: Attach a raw-JSON stdout handler (journald captures stdout)
        """
        self.name = name
        self.component = component

        self.logger = logging.getLogger(name)
        self.logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))

        # Avoid duplicate handlers if logger already exists
        if stream and not self.logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.logger.level)
            console_handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(console_handler)

    def log(
        self,
        level: str,
        event: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> LogEntry:
        """Log a structured monitoring event and return the entry."""
        entry = LogEntry(
            component=self.component,
            level=level,
            event=event,
            message=message,
            details=details,
        )
        self.logger.log(LOG_LEVELS.get(level.upper(), logging.INFO), entry.to_json())
        return entry

    def debug(self, event: str, message: str, **kwargs: Any) -> LogEntry:
        """Log debug event."""
        return self.log("DEBUG", event, message, **kwargs)

    def info(self, event: str, message: str, **kwargs: Any) -> LogEntry:
        """Log info event."""
        return self.log("INFO", event, message, **kwargs)

    def warning(self, event: str, message: str, **kwargs: Any) -> LogEntry:
        """Log warning event."""
        return self.log("WARN", event, message, **kwargs)

    def error(self, event: str, message: str, **kwargs: Any) -> LogEntry:
        """Log error event."""
        return self.log("ERROR", event, message, **kwargs)


def configure_monitoring_logging(component: str, level: Optional[str] = None) -> MonitoringLogger:
    """Configure monitoring logging for a component.

    Honors HEARTHBOARD_LOG_LEVEL and forces DEBUG when HEARTHBOARD_DEBUG is truthy.
    """
    log_level = level or os.environ.get("HEARTHBOARD_LOG_LEVEL", "INFO")
    if os.environ.get("HEARTHBOARD_DEBUG", "").lower() in ("true", "1", "yes"):
        log_level = "DEBUG"

    return MonitoringLogger(name=f"hearthboard.monitoring.{component}", component=component, level=log_level)


def get_logger(component: str) -> MonitoringLogger:
    """Get or create the cached monitoring logger for a component."""
    if component in _logger_cache:
        return _logger_cache[component]

    monitoring_logger = configure_monitoring_logging(component)
    _logger_cache[component] = monitoring_logger
    return monitoring_logger


def log_monitoring_event(
    component: str, event: str, message: str, level: str = "INFO", **kwargs: Any
) -> LogEntry:
    """Log an event for a component in one call."""
    return get_logger(component).log(level, event, message, **kwargs)
