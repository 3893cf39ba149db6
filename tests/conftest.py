"""Shared fixtures for hearthboard tests."""

import logging
from collections.abc import AsyncIterator, Generator
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from hearthboard.calendar.models import CalendarSource, RawFeedPayload
from hearthboard.core.http_client import close_all_clients

ENV_VARS = (
    "HEARTHBOARD_ICS_URLS",
    "ICS_URLS",
    "HEARTHBOARD_DAYS_AHEAD",
    "DAYS_AHEAD",
    "HEARTHBOARD_FETCH_ATTEMPTS",
    "HEARTHBOARD_FETCH_TIMEOUT",
    "HEARTHBOARD_RETRY_BACKOFF",
    "HEARTHBOARD_MAX_EXPANSIONS",
    "HEARTHBOARD_EXPANSION_BUDGET_MS",
    "HEARTHBOARD_TIMEZONE",
    "HEARTHBOARD_ZIP_CODE",
    "ZIP_CODE",
    "HEARTHBOARD_WEATHER_LAT",
    "HEARTHBOARD_WEATHER_LON",
    "WEATHER_LAT",
    "WEATHER_LON",
    "HEARTHBOARD_WEB_HOST",
    "HEARTHBOARD_WEB_PORT",
    "HEARTHBOARD_LOG_LEVEL",
    "HEARTHBOARD_DEBUG",
    "HEARTHBOARD_BACKEND_URL",
    "HEARTHBOARD_API_TIMEOUT",
    "HEARTHBOARD_EVENTS_INTERVAL",
    "HEARTHBOARD_WEATHER_INTERVAL",
    "HEARTHBOARD_FAILURE_COOLDOWN",
    "HEARTHBOARD_MIN_DAY_BUCKETS",
)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear hearthboard environment variables so the host setup never leaks into tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_root_log_level() -> Generator[None, Any, None]:
    """Restore the root logger level so logging setup in one test never leaks into others."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test."""
    yield
    await close_all_clients()


@pytest.fixture
def fetch_settings() -> SimpleNamespace:
    """Fetcher settings with no real waiting between attempts."""
    return SimpleNamespace(fetch_attempts=3, fetch_timeout=5.0, retry_backoff=0.0)


@pytest.fixture
def chicago() -> ZoneInfo:
    return ZoneInfo("America/Chicago")


@pytest.fixture
def fixed_now() -> datetime:
    """Saturday 2024-06-01 12:00 UTC."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_payload():
    """Build a RawFeedPayload from ICS text."""

    def _make(text: str, index: int = 0) -> RawFeedPayload:
        source = CalendarSource(url=f"https://calendars.example.com/{index}.ics", source_index=index)
        return RawFeedPayload(source=source, text=text)

    return _make
