"""Configuration management for the hearthboard server.

Configuration comes from environment variables with an optional ``.env``
file for defaults. The server rebuilds its configuration on every
``/api/events`` request, so feed list changes apply without a restart.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30
DEFAULT_FETCH_ATTEMPTS = 3
DEFAULT_FETCH_TIMEOUT_SECONDS = 15.0
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_EXPANSIONS = 2000
DEFAULT_EXPANSION_BUDGET_MS = 200
DEFAULT_WEATHER_LAT = "37.7749"  # San Francisco
DEFAULT_WEATHER_LON = "-122.4194"

_FEED_SEPARATORS = re.compile(r"[,\n;]")


@dataclass
class ServerConfig:
    """Resolved server configuration for one request or startup."""

    ics_urls: list[str] = field(default_factory=list)
    horizon_days: int = DEFAULT_HORIZON_DAYS
    fetch_attempts: int = DEFAULT_FETCH_ATTEMPTS
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS
    max_expansions: int = DEFAULT_MAX_EXPANSIONS
    expansion_time_budget_ms: int = DEFAULT_EXPANSION_BUDGET_MS
    timezone: Optional[str] = None

    zip_code: Optional[str] = None
    weather_lat: str = DEFAULT_WEATHER_LAT
    weather_lon: str = DEFAULT_WEATHER_LON

    server_bind: str = "0.0.0.0"  # nosec B104 - kiosk server is meant to be reachable on the LAN
    server_port: int = 8080
    log_level: str = "INFO"
    debug_logging: bool = False

    def diagnostic_summary(self) -> dict[str, Any]:
        """Return non-sensitive settings for startup logs (feed URLs are never included)."""
        return {
            "feeds": len(self.ics_urls),
            "horizon_days": self.horizon_days,
            "fetch_attempts": self.fetch_attempts,
            "fetch_timeout": self.fetch_timeout,
            "timezone": self.timezone or "system",
            "server_bind": self.server_bind,
            "server_port": self.server_port,
        }


def parse_feed_urls(raw: Optional[str]) -> list[str]:
    """Split a delimited feed list, dropping blanks.

    Commas are the documented separator; newlines and semicolons are accepted
    so multi-line ``.env`` values work too.
    """
    if not raw:
        return []
    return [part.strip() for part in _FEED_SEPARATORS.split(raw) if part.strip()]


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _int_env(default: int, *names: str, minimum: int = 0) -> int:
    raw = _first_env(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %d", names[0], raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below minimum %d; using default %d", names[0], value, minimum, default)
        return default
    return value


def _float_env(default: float, *names: str) -> float:
    raw = _first_env(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", names[0], raw, default)
        return default
    if value < 0:
        logger.warning("%s must not be negative; using default %s", names[0], default)
        return default
    return value


def _bool_env(*names: str) -> bool:
    raw = _first_env(*names)
    return raw is not None and raw.lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of the user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("Failed to read .env file %s (continuing)", self.env_file_path, exc_info=True)
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export ") :].strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> ServerConfig:
        """Build configuration from environment variables.

        Recognizes (legacy fallbacks in parentheses):
        - HEARTHBOARD_ICS_URLS (ICS_URLS) -> ics_urls
        - HEARTHBOARD_DAYS_AHEAD (DAYS_AHEAD) -> horizon_days
        - HEARTHBOARD_FETCH_ATTEMPTS, HEARTHBOARD_FETCH_TIMEOUT, HEARTHBOARD_RETRY_BACKOFF
        - HEARTHBOARD_MAX_EXPANSIONS, HEARTHBOARD_EXPANSION_BUDGET_MS, HEARTHBOARD_TIMEZONE
        - HEARTHBOARD_ZIP_CODE (ZIP_CODE), HEARTHBOARD_WEATHER_LAT/LON (WEATHER_LAT/LON)
        - HEARTHBOARD_WEB_HOST, HEARTHBOARD_WEB_PORT
        - HEARTHBOARD_LOG_LEVEL, HEARTHBOARD_DEBUG

        Returns:
            ServerConfig populated from the environment
        """
        return ServerConfig(
            ics_urls=parse_feed_urls(_first_env("HEARTHBOARD_ICS_URLS", "ICS_URLS")),
            horizon_days=_int_env(
                DEFAULT_HORIZON_DAYS, "HEARTHBOARD_DAYS_AHEAD", "DAYS_AHEAD", minimum=1
            ),
            fetch_attempts=_int_env(DEFAULT_FETCH_ATTEMPTS, "HEARTHBOARD_FETCH_ATTEMPTS", minimum=1),
            fetch_timeout=_float_env(DEFAULT_FETCH_TIMEOUT_SECONDS, "HEARTHBOARD_FETCH_TIMEOUT"),
            retry_backoff=_float_env(DEFAULT_RETRY_BACKOFF_SECONDS, "HEARTHBOARD_RETRY_BACKOFF"),
            max_expansions=_int_env(DEFAULT_MAX_EXPANSIONS, "HEARTHBOARD_MAX_EXPANSIONS", minimum=1),
            expansion_time_budget_ms=_int_env(
                DEFAULT_EXPANSION_BUDGET_MS, "HEARTHBOARD_EXPANSION_BUDGET_MS", minimum=1
            ),
            timezone=_first_env("HEARTHBOARD_TIMEZONE"),
            zip_code=_first_env("HEARTHBOARD_ZIP_CODE", "ZIP_CODE"),
            weather_lat=_first_env("HEARTHBOARD_WEATHER_LAT", "WEATHER_LAT") or DEFAULT_WEATHER_LAT,
            weather_lon=_first_env("HEARTHBOARD_WEATHER_LON", "WEATHER_LON") or DEFAULT_WEATHER_LON,
            server_bind=_first_env("HEARTHBOARD_WEB_HOST") or "0.0.0.0",  # nosec B104
            server_port=_int_env(8080, "HEARTHBOARD_WEB_PORT", minimum=1),
            log_level=(_first_env("HEARTHBOARD_LOG_LEVEL") or "INFO").upper(),
            debug_logging=_bool_env("HEARTHBOARD_DEBUG"),
        )

    def load_full_config(self) -> ServerConfig:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.build_config_from_env()
