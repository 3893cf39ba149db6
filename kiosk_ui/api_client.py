"""Async API client for the hearthboard server.

Fetches ``/api/events`` and ``/api/weather``. Failures are returned as values
rather than raised so the display loop can keep showing its last good snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from hearthboard.calendar.exceptions import MalformedResponseError
from hearthboard.calendar.models import EventsResponse
from hearthboard.core.retry import describe_error
from hearthboard.weather.models import WeatherReport
from kiosk_ui.config import Config

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {"Accept": "application/json", "Cache-Control": "no-store"}


@dataclass(frozen=True)
class EventsFetchOutcome:
    """Result of one events request: a usable response or a failure reason."""

    response: EventsResponse | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.error is None

    @classmethod
    def success(cls, response: EventsResponse) -> EventsFetchOutcome:
        return cls(response=response)

    @classmethod
    def failure(cls, error: str) -> EventsFetchOutcome:
        return cls(error=error)


class DashboardAPIClient:
    """Async HTTP client for the backend API."""

    def __init__(self, config: Config, session: aiohttp.ClientSession | None = None):
        """Initialize API client.

        Args:
            config: Configuration instance
            session: Optional externally owned session (not closed by ``close()``)
        """
        self.config = config
        self.events_endpoint = config.get_api_endpoint("/api/events")
        self.weather_endpoint = config.get_api_endpoint("/api/weather")

        self.consecutive_failures: int = 0
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.api_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _get_json(self, url: str) -> Any:
        session = await self._get_session()
        async with session.get(url, headers=REQUEST_HEADERS) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def fetch_events(self) -> EventsFetchOutcome:
        """Fetch merged events.

        A response carrying an ``error`` is a failure ("no new data"); a
        ``warning`` still counts as success.
        """
        try:
            data = await self._get_json(self.events_endpoint)
            response = EventsResponse.from_api_dict(data)
        except aiohttp.ClientResponseError as e:
            return self._failed(f"HTTP {e.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return self._failed(f"backend unreachable: {describe_error(e)}")
        except MalformedResponseError as e:
            return self._failed(f"malformed response: {e}")
        except ValueError as e:
            return self._failed(f"invalid JSON: {e}")

        if response.is_error:
            return self._failed(response.error or "backend reported an error")

        self.consecutive_failures = 0
        logger.debug(
            "Events fetch successful - %d events%s",
            len(response.events),
            " (with warning)" if response.warning else "",
        )
        return EventsFetchOutcome.success(response)

    def _failed(self, error: str) -> EventsFetchOutcome:
        self.consecutive_failures += 1
        logger.warning("Events fetch failed (attempt %d): %s", self.consecutive_failures, error)
        return EventsFetchOutcome.failure(error)

    async def fetch_weather(self) -> WeatherReport:
        """Fetch the weather report; failures yield an unavailable report."""
        try:
            data = await self._get_json(self.weather_endpoint)
            return WeatherReport.from_api_dict(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Weather fetch failed: %s", describe_error(e))
            return WeatherReport.unavailable(describe_error(e))

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("API client session closed")
        self._session = None
