"""Run the console kiosk against an embedded hearthboard server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

import aiohttp

from .api.server import _serve
from .core.config_manager import ServerConfig

logger = logging.getLogger(__name__)


class BackendConnectionError(Exception):
    """The embedded backend did not come up."""


async def _wait_for_backend_ready(
    backend_url: str, max_wait_seconds: float = 30, check_interval: float = 0.5
) -> None:
    """Poll ``/api/health`` until the server answers.

    Raises:
        BackendConnectionError: If the server does not answer in time
    """
    health_url = f"{backend_url}/api/health"
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max_wait_seconds
    attempts = 0

    async with aiohttp.ClientSession() as session:
        while True:
            attempts += 1
            try:
                async with session.get(health_url, timeout=aiohttp.ClientTimeout(total=5)) as response:
                    # 503 still means the server is up; it only reports a failed refresh.
                    if response.status in (200, 503):
                        logger.info("Backend is ready after %d checks", attempts)
                        return
            except (TimeoutError, aiohttp.ClientError) as exc:
                logger.debug("Backend health check %d failed: %s", attempts, exc)

            if loop.time() >= deadline:
                raise BackendConnectionError(
                    f"Backend did not become ready within {max_wait_seconds} seconds "
                    f"({attempts} health checks)"
                )
            await asyncio.sleep(check_interval)


async def run_with_console_ui(config: ServerConfig) -> None:
    """Run the server and the console kiosk in one event loop until signalled."""
    from kiosk_ui.config import Config
    from kiosk_ui.main import DashboardKioskApp

    stop_event = asyncio.Event()
    server_task = asyncio.create_task(_serve(config, external_stop_event=stop_event))

    host = "127.0.0.1" if config.server_bind in ("0.0.0.0", "") else config.server_bind  # nosec B104
    kiosk_config = Config.from_env()
    kiosk_config.backend_url = f"http://{host}:{config.server_port}"
    if kiosk_config.timezone is None:
        kiosk_config.timezone = config.timezone

    app = DashboardKioskApp(kiosk_config)

    loop = asyncio.get_running_loop()

    def _on_signal() -> None:
        logger.info("Shutdown signal received")
        app.running = False
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_signal)

    try:
        await _wait_for_backend_ready(kiosk_config.backend_url)
        await app.run()
    finally:
        await app.shutdown()
        stop_event.set()
        await server_task
