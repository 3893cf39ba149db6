"""JSON API routes for the hearthboard server."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from ...calendar.models import CalendarSource, EventsResponse
from ...core.config_manager import ServerConfig
from ...core.health_tracker import HealthTracker
from ...domain.pipeline import EventsPipeline
from ...weather.models import WeatherReport

logger = logging.getLogger(__name__)


def register_api_routes(
    app: web.Application,
    config_loader: Callable[[], ServerConfig],
    pipeline_factory: Callable[[ServerConfig], EventsPipeline],
    weather_provider: Callable[[], Awaitable[WeatherReport]],
    health_tracker: HealthTracker,
) -> None:
    """Register the events, weather and health endpoints.

    Args:
        app: aiohttp web application
        config_loader: Returns fresh configuration; called on every events request
        pipeline_factory: Builds an ingestion pipeline for a configuration
        weather_provider: Coroutine function returning the current weather
        health_tracker: Health tracking instance
    """

    async def get_events(_request: web.Request) -> web.Response:
        """Run the ingestion pipeline; always answers 200 with {events, error?, warning?}."""
        try:
            config = config_loader()
            sources = CalendarSource.from_urls(config.ics_urls)
            pipeline = pipeline_factory(config)
            outcome = await pipeline.run(sources, config.horizon_days)
            body: dict[str, Any] = outcome.to_response().to_api_dict()
        except Exception as e:
            logger.exception("Unexpected error building events response")
            body = EventsResponse(error=str(e) or "Failed to load calendar events").to_api_dict()

        logger.debug(
            "/api/events -> %d events (error=%s, warning=%s)",
            len(body["events"]),
            "error" in body,
            "warning" in body,
        )
        return web.json_response(body, status=200)

    async def get_weather(_request: web.Request) -> web.Response:
        """Current weather; failures are reported in the body, never as HTTP errors."""
        try:
            report = await weather_provider()
        except Exception as e:
            logger.exception("Unexpected error fetching weather")
            report = WeatherReport.unavailable(str(e) or "Failed to fetch weather")
        return web.json_response(report.to_api_dict(), status=200)

    async def health_check(_request: web.Request) -> web.Response:
        """Health check endpoint for monitoring."""
        health = health_tracker.to_dict()
        http_status = 503 if health["status"] == "critical" else 200
        return web.json_response(health, status=http_status)

    app.router.add_get("/api/events", get_events)
    app.router.add_get("/api/weather", get_weather)
    app.router.add_get("/api/health", health_check)
