"""HTTP fetcher for ICS calendar feeds."""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from ..core.http_client import get_shared_client
from ..core.monitoring_logging import get_logger
from ..core.retry import RetryExhaustedError, RetryPolicy, describe_error, linear_backoff
from .exceptions import (
    FeedConfigurationError,
    FeedFetchError,
    FeedValidationError,
)
from .models import CalendarSource, RawFeedPayload

logger = logging.getLogger(__name__)

ICS_MARKER = "BEGIN:VCALENDAR"

# Bypass intermediary caches; feeds are re-read on every refresh.
FETCH_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _is_retryable(error: BaseException) -> bool:
    return not isinstance(error, FeedConfigurationError)


def validate_feed_url(url: str) -> None:
    """Check that a feed URL is a usable http(s) URL.

    Raises:
        FeedConfigurationError: If the scheme is not http/https or the host is missing
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise FeedConfigurationError(f"invalid feed URL: {e}") from e

    if parsed.scheme not in ("http", "https"):
        raise FeedConfigurationError(f"unsupported URL scheme: {parsed.scheme or '(none)'}")
    if not parsed.hostname:
        raise FeedConfigurationError("feed URL has no host")


def validate_ics_text(text: str) -> None:
    """Reject payloads that are obviously not iCalendar documents.

    Raises:
        FeedValidationError: If the body is empty or lacks a VCALENDAR marker
    """
    if not text or not text.strip():
        raise FeedValidationError("empty response body")
    if ICS_MARKER not in text.upper():
        raise FeedValidationError("response is not iCalendar data (missing BEGIN:VCALENDAR)")


class FeedFetcher:
    """Retrieves raw calendar documents with bounded retries."""

    def __init__(self, settings: Any, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize the fetcher.

        Args:
            settings: Object exposing fetch_attempts, fetch_timeout and retry_backoff
            client: Optional HTTP client; the shared pooled client is used when omitted
        """
        self.settings = settings
        self._client = client
        self.policy = RetryPolicy(
            max_attempts=int(getattr(settings, "fetch_attempts", 3)),
            backoff=linear_backoff(float(getattr(settings, "retry_backoff", 1.0))),
            attempt_timeout=float(getattr(settings, "fetch_timeout", 15.0)),
            is_retryable=_is_retryable,
        )
        self.monitor = get_logger("fetcher")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await get_shared_client("feeds")

    async def _fetch_once(self, source: CalendarSource) -> str:
        client = await self._get_client()
        try:
            response = await client.get(source.url, headers=FETCH_HEADERS)
        except httpx.HTTPError as e:
            raise FeedFetchError(f"request failed: {describe_error(e)}") from e

        if not 200 <= response.status_code < 300:
            raise FeedFetchError(f"HTTP {response.status_code}")

        text = response.text
        validate_ics_text(text)
        return text

    def _record_attempt(self, source: CalendarSource, attempt: int, error: Optional[BaseException]) -> None:
        details: dict[str, Any] = {
            "source": source.display_name,
            "attempt": attempt,
            "max_attempts": self.policy.max_attempts,
            "outcome": "success" if error is None else "failure",
        }
        if error is None:
            self.monitor.debug("feed.fetch.attempt", f"Fetched {source.display_name}", details=details)
            return
        details["error"] = describe_error(error)
        details["error_type"] = type(error).__name__
        self.monitor.warning(
            "feed.fetch.attempt",
            f"Attempt {attempt}/{self.policy.max_attempts} for {source.display_name} failed",
            details=details,
        )

    async def fetch(self, source: CalendarSource) -> RawFeedPayload:
        """Fetch one feed.

        Args:
            source: Feed to retrieve

        Returns:
            Raw payload containing the validated ICS text

        Raises:
            FeedConfigurationError: If the feed URL is unusable
            FeedFetchError: If every attempt failed; ``last_error`` holds the final cause
        """
        validate_feed_url(source.url)

        try:
            text = await self.policy.run(
                lambda: self._fetch_once(source),
                description=source.display_name,
                on_attempt=lambda attempt, err: self._record_attempt(source, attempt, err),
            )
        except RetryExhaustedError as e:
            self.monitor.error(
                "feed.fetch.exhausted",
                f"Giving up on {source.display_name}",
                details={
                    "source": source.display_name,
                    "attempts": e.attempts,
                    "error": describe_error(e.last_error),
                },
            )
            raise FeedFetchError(
                f"failed after {e.attempts} attempts: {describe_error(e.last_error)}",
                last_error=e.last_error,
            ) from e

        logger.debug("Fetched %s (%d bytes)", source.display_name, len(text))
        return RawFeedPayload(source=source, text=text)
