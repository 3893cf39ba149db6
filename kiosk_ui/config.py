"""Configuration management for the kiosk display.

Loads configuration from environment variables, matching the pattern used by
the hearthboard server.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive; using default %d", name, default)
        return default
    return value


@dataclass
class Config:
    """Kiosk display configuration."""

    # Backend API settings
    backend_url: str = "http://localhost:8080"
    api_timeout: int = 10  # seconds

    # Refresh settings
    events_interval: int = 60  # seconds
    weather_interval: int = 1800  # 30 minutes
    failure_cooldown: int = 300  # one extra events refresh this long after a failure

    # Layout
    min_day_buckets: int = 4
    timezone: str | None = None

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            HEARTHBOARD_BACKEND_URL - Backend API URL
            HEARTHBOARD_API_TIMEOUT - API request timeout in seconds
            HEARTHBOARD_EVENTS_INTERVAL - Events poll interval in seconds
            HEARTHBOARD_WEATHER_INTERVAL - Weather poll interval in seconds
            HEARTHBOARD_FAILURE_COOLDOWN - Delay of the extra refresh after a failure
            HEARTHBOARD_MIN_DAY_BUCKETS - Number of days always shown
            HEARTHBOARD_TIMEZONE - Zone used to group events by day
            HEARTHBOARD_LOG_LEVEL - Logging level (DEBUG, INFO, WARNING, ERROR)

        Returns:
            Config instance with values from environment
        """
        backend_url = os.getenv("HEARTHBOARD_BACKEND_URL", "http://localhost:8080").rstrip("/")

        return cls(
            backend_url=backend_url,
            api_timeout=_int_env("HEARTHBOARD_API_TIMEOUT", 10),
            events_interval=_int_env("HEARTHBOARD_EVENTS_INTERVAL", 60),
            weather_interval=_int_env("HEARTHBOARD_WEATHER_INTERVAL", 1800),
            failure_cooldown=_int_env("HEARTHBOARD_FAILURE_COOLDOWN", 300),
            min_day_buckets=_int_env("HEARTHBOARD_MIN_DAY_BUCKETS", 4),
            timezone=os.getenv("HEARTHBOARD_TIMEZONE") or None,
            log_level=os.getenv("HEARTHBOARD_LOG_LEVEL", "INFO").upper(),
        )

    def get_api_endpoint(self, path: str) -> str:
        """Get full API endpoint URL.

        Args:
            path: API path (e.g., "/api/events")

        Returns:
            Full URL (e.g., "http://localhost:8080/api/events")
        """
        if not path.startswith("/"):
            path = "/" + path

        return f"{self.backend_url}{path}"
