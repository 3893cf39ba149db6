"""hearthboard.api.server - asyncio HTTP server for the household dashboard.

Exposes a small JSON API:
- GET /api/events: fetch, expand and merge every configured feed (fresh per request)
- GET /api/weather: current conditions and today's range
- GET /api/health: outcome of the most recent ingestion run

Nothing is cached between requests; the feed list is re-read from the
environment on every events request.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from collections.abc import Callable
from typing import Optional

from aiohttp import web

from ..calendar.datetime_utils import resolve_timezone
from ..calendar.fetcher import FeedFetcher
from ..calendar.parser import FeedParser
from ..core.config_manager import ConfigManager, ServerConfig
from ..core.health_tracker import HealthTracker
from ..core.http_client import close_all_clients
from ..core.logging_config import configure_logging
from ..core.monitoring_logging import get_logger
from ..domain.pipeline import EventsPipeline
from ..weather.client import WeatherClient
from .middleware import correlation_id_middleware
from .routes import register_api_routes

logger = logging.getLogger(__name__)
monitoring_logger = get_logger("server")


def build_pipeline(config: ServerConfig, health_tracker: Optional[HealthTracker] = None) -> EventsPipeline:
    """Wire a fetcher and parser for one configuration."""
    parser = FeedParser(
        max_expansions=config.max_expansions,
        time_budget_ms=config.expansion_time_budget_ms,
        default_timezone=resolve_timezone(config.timezone),
    )
    return EventsPipeline(FeedFetcher(config), parser, health_tracker=health_tracker)


def make_app(
    config: ServerConfig,
    config_loader: Optional[Callable[[], ServerConfig]] = None,
    pipeline_factory: Optional[Callable[[ServerConfig], EventsPipeline]] = None,
    weather_client: Optional[WeatherClient] = None,
    health_tracker: Optional[HealthTracker] = None,
) -> web.Application:
    """Create the aiohttp application.

    Args:
        config: Startup configuration (weather location, bind address)
        config_loader: Re-reads configuration per events request (defaults to the environment)
        pipeline_factory: Builds a pipeline per request (defaults to ``build_pipeline``)
        weather_client: Weather collaborator (defaults to Open-Meteo client for ``config``)
        health_tracker: Shared health tracker
    """
    tracker = health_tracker or HealthTracker()
    weather = weather_client or WeatherClient(config)
    manager = ConfigManager()

    app = web.Application(middlewares=[correlation_id_middleware])
    register_api_routes(
        app,
        config_loader=config_loader or manager.load_full_config,
        pipeline_factory=pipeline_factory or (lambda cfg: build_pipeline(cfg, tracker)),
        weather_provider=weather.get_weather,
        health_tracker=tracker,
    )

    async def _shutdown(_app: web.Application) -> None:
        logger.info("Application shutdown requested")

    app.on_shutdown.append(_shutdown)
    return app


async def _serve(config: ServerConfig, external_stop_event: Optional[asyncio.Event] = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration
        external_stop_event: If provided, the caller owns shutdown and no signal
            handlers are registered here
    """
    stop_event = external_stop_event or asyncio.Event()
    health_tracker = HealthTracker()
    app = make_app(config, health_tracker=health_tracker)

    runner = web.AppRunner(app)
    await runner.setup()

    host = config.server_bind
    port = config.server_port
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError as e:
        logger.exception("Failed to start server on %s:%d", host, port)
        monitoring_logger.log(
            "CRITICAL",
            "server.startup.failure",
            f"Failed to start server on {host}:{port}",
            details={"host": host, "port": port, "error": str(e)},
        )
        await runner.cleanup()
        raise

    logger.info("Server started on %s:%d (%d feeds configured)", host, port, len(config.ics_urls))
    monitoring_logger.info(
        "server.startup.success",
        f"Hearthboard server started on {host}:{port}",
        details={"host": host, "port": port, "pid": os.getpid()},
    )

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    try:
        await stop_event.wait()
    finally:
        logger.info("Stopping server")
        monitoring_logger.info(
            "server.shutdown.start",
            "Server shutdown initiated",
            details={"uptime_seconds": health_tracker.get_uptime_seconds()},
        )
        await runner.cleanup()
        await close_all_clients()
        logger.info("Server shutdown complete")


def start_server(config: ServerConfig) -> None:
    """Run the server in a new event loop; blocks until SIGINT/SIGTERM."""
    configure_logging(debug_mode=config.debug_logging)
    logger.debug("Resolved configuration (diagnostic): %s", config.diagnostic_summary())

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
