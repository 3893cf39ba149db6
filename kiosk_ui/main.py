"""Main entry point for the hearthboard kiosk display.

Coordinates the API client, display state and renderer in an async event
loop: events are polled every minute, weather every half hour, and a failed
events refresh schedules one extra refresh after a cooldown.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Protocol

from hearthboard.calendar.datetime_utils import now_utc, resolve_timezone
from kiosk_ui.api_client import DashboardAPIClient
from kiosk_ui.config import Config
from kiosk_ui.renderer import ConsoleRenderer
from kiosk_ui.state import DashboardView, DisplayState

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    def render(self, view: DashboardView) -> None: ...


class DashboardKioskApp:
    """Main application coordinator.

    Runs two independent polling loops (events and weather). Each completed
    refresh swaps in a new immutable ``DisplayState`` and renders a fresh view;
    when refreshes overlap, the last one to complete wins.
    """

    def __init__(
        self,
        config: Config,
        api_client: DashboardAPIClient | None = None,
        renderer: Renderer | None = None,
        clock: Callable[[], datetime] = now_utc,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the application.

        Args:
            config: Configuration instance
            api_client: Backend client (created from config when omitted)
            renderer: View consumer (console renderer when omitted)
            clock: Returns the current aware instant
            sleep: Awaitable sleep, injectable for tests
        """
        self.config = config
        self.running = False
        self.tz = resolve_timezone(config.timezone)
        self.clock = clock
        self._sleep = sleep

        self.state = DisplayState()
        self.last_view: DashboardView | None = None
        self._cooldown_task: asyncio.Task[None] | None = None

        self.api_client = api_client or DashboardAPIClient(config)
        self.renderer = renderer or ConsoleRenderer(self.tz)

        logger.info("Hearthboard kiosk initialized")
        logger.info("Backend URL: %s", config.backend_url)
        logger.info(
            "Events every %ds, weather every %ds, failure cooldown %ds",
            config.events_interval,
            config.weather_interval,
            config.failure_cooldown,
        )

    @property
    def cooldown_pending(self) -> bool:
        return self._cooldown_task is not None and not self._cooldown_task.done()

    async def refresh_events(self) -> DisplayState:
        """Fetch events once and publish the resulting state."""
        outcome = await self.api_client.fetch_events()

        if outcome.ok and outcome.response is not None:
            self._cancel_cooldown()
            self.state = self.state.with_events(
                tuple(outcome.response.events), self.clock(), outcome.response.warning
            )
        else:
            self.state = self.state.with_failure(outcome.error or "events refresh failed")
            self._schedule_cooldown()

        self._publish()
        return self.state

    async def refresh_weather(self) -> DisplayState:
        """Fetch weather once and publish the resulting state."""
        report = await self.api_client.fetch_weather()
        self.state = self.state.with_weather(report)
        self._publish()
        return self.state

    def _schedule_cooldown(self) -> None:
        if self.cooldown_pending:
            logger.debug("Cooldown refresh already pending")
            return
        logger.info("Scheduling extra events refresh in %ds", self.config.failure_cooldown)
        self._cooldown_task = asyncio.create_task(self._cooldown_refresh())

    def _cancel_cooldown(self) -> None:
        if self.cooldown_pending and self._cooldown_task is not asyncio.current_task():
            assert self._cooldown_task is not None
            self._cooldown_task.cancel()
            logger.debug("Cancelled pending cooldown refresh after success")
        self._cooldown_task = None

    async def _cooldown_refresh(self) -> None:
        await self._sleep(self.config.failure_cooldown)
        # Clear before refreshing so a further failure can schedule its own cooldown.
        self._cooldown_task = None
        try:
            await self.refresh_events()
        except Exception:
            logger.exception("Error in cooldown refresh")

    def _publish(self) -> None:
        now = self.clock()
        view = DashboardView.build(
            self.state,
            today=now.astimezone(self.tz).date(),
            tz=self.tz,
            generated_at=now,
            min_days=self.config.min_day_buckets,
        )
        self.last_view = view
        try:
            self.renderer.render(view)
        except Exception:
            logger.exception("Error rendering view")

    async def run(self) -> None:
        """Run the events and weather loops until stopped."""
        self.running = True
        logger.info("Starting kiosk loops")

        tasks = [
            asyncio.create_task(self._events_loop()),
            asyncio.create_task(self._weather_loop()),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        logger.info("Kiosk loops stopped")

    async def _events_loop(self) -> None:
        while self.running:
            try:
                await self.refresh_events()
            except Exception:
                logger.exception("Error in events refresh loop")
            await self._interruptible_sleep(self.config.events_interval)

    async def _weather_loop(self) -> None:
        while self.running:
            try:
                await self.refresh_weather()
            except Exception:
                logger.exception("Error in weather refresh loop")
            await self._interruptible_sleep(self.config.weather_interval)

    async def _interruptible_sleep(self, duration: float) -> None:
        """Sleep in 0.5s chunks to allow responsive shutdown."""
        remaining = duration
        while remaining > 0 and self.running:
            chunk = min(0.5, remaining)
            await self._sleep(chunk)
            remaining -= chunk

    async def shutdown(self) -> None:
        """Stop the loops, cancel any pending cooldown and close the client."""
        logger.info("Shutting down kiosk...")
        self.running = False

        task = self._cooldown_task
        self._cooldown_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self.api_client.close()
        logger.info("Kiosk shutdown complete")


async def main(config: Config | None = None) -> None:
    """Run the kiosk until SIGINT/SIGTERM."""
    from hearthboard import _init_logging

    config = config or Config.from_env()
    _init_logging(config.log_level)

    app = DashboardKioskApp(config)
    loop = asyncio.get_running_loop()

    def signal_handler(sig: Any) -> None:
        logger.info("Received signal: %s", sig)
        app.running = False

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

    try:
        await app.run()
    finally:
        await app.shutdown()
