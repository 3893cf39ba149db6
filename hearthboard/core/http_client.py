"""Shared HTTP client manager.

Keeps one pooled ``httpx.AsyncClient`` per client id so feed and weather
requests reuse connections instead of creating a client per fetch.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

# Global state for shared HTTP clients
_shared_clients: dict[str, httpx.AsyncClient] = {}
_client_lock = asyncio.Lock()

DEFAULT_LIMITS = httpx.Limits(max_connections=8, max_keepalive_connections=4)

# Per-attempt limits are enforced by RetryPolicy; these bound individual phases.
DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=30.0, write=10.0, pool=30.0)

DEFAULT_HEADERS = {
    "User-Agent": "Hearthboard/1.0 (+household calendar display)",
    "Accept": "text/calendar, text/plain;q=0.9, application/json;q=0.8, */*;q=0.5",
}


async def get_shared_client(
    client_id: str = "default",
    limits: Optional[httpx.Limits] = None,
    timeout: Optional[httpx.Timeout] = None,
) -> httpx.AsyncClient:
    """Get or create a shared HTTP client with connection pooling.

    Args:
        client_id: Identifier for the client (allows multiple clients if needed)
        limits: Custom connection limits
        timeout: Custom timeout configuration

    Returns:
        Shared httpx.AsyncClient

    Raises:
        RuntimeError: If client creation fails
    """
    async with _client_lock:
        existing = _shared_clients.get(client_id)
        if existing is not None and not existing.is_closed:
            return existing

        try:
            client = httpx.AsyncClient(
                limits=limits or DEFAULT_LIMITS,
                timeout=timeout or DEFAULT_TIMEOUT,
                follow_redirects=True,
                headers=DEFAULT_HEADERS,
            )
        except Exception as e:
            logger.exception("Failed to create shared HTTP client '%s'", client_id)
            raise RuntimeError(f"Failed to create shared HTTP client: {e}") from e

        _shared_clients[client_id] = client
        logger.debug("Created shared HTTP client '%s'", client_id)
        return client


async def close_all_clients() -> None:
    """Close all shared HTTP clients.

    Called during application shutdown and between tests.
    """
    async with _client_lock:
        for client_id, client in _shared_clients.items():
            try:
                if not client.is_closed:
                    await client.aclose()
                    logger.debug("Closed shared HTTP client '%s'", client_id)
            except Exception as e:
                logger.warning("Error closing shared HTTP client '%s': %s", client_id, e)
        _shared_clients.clear()
