"""Exception hierarchy for calendar feed ingestion."""

from __future__ import annotations

from typing import Optional


class HearthboardError(Exception):
    """Base exception for all hearthboard errors."""


class FeedError(HearthboardError):
    """Base exception for errors tied to a single calendar feed."""


class FeedConfigurationError(FeedError):
    """Feed handle is unusable (bad scheme, missing host). Never retried."""


class FeedFetchError(FeedError):
    """Retrieving a feed failed (network error, timeout, non-success status)."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.last_error = last_error


class FeedValidationError(FeedError):
    """Retrieved content does not look like iCalendar data."""


class FeedParseError(FeedError):
    """The whole feed document could not be parsed."""


class MalformedResponseError(HearthboardError):
    """A response from the ingestion boundary is not structurally valid."""
