"""Data models for calendar ingestion - Hearthboard.

Wire shapes follow the ingestion boundary consumed by the kiosk display:
``{"events": [...], "error"?: str, "warning"?: str}`` where each event is
``{start, end, title, location?, description?, sourceIndex}``.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from .datetime_utils import format_instant
from .exceptions import MalformedResponseError

NO_TITLE_PLACEHOLDER = "(No title)"


class PipelineState(str, Enum):
    """Lifecycle of one ingestion refresh cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    TOTALLY_FAILED = "totally_failed"


class FailureKind(str, Enum):
    """Stage at which a single feed failed."""

    FETCH = "fetch"
    VALIDATION = "validation"
    PARSE = "parse"
    UNEXPECTED = "unexpected"


class CalendarSource(BaseModel):
    """A configured calendar feed and its stable position in the feed list."""

    url: str = Field(..., repr=False, description="ICS feed URL (may embed secrets)")
    source_index: int = Field(..., ge=0, description="Ordinal position in configuration")

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        """Log-safe name that never exposes the feed URL."""
        return f"feed #{self.source_index + 1}"

    @classmethod
    def from_urls(cls, urls: Iterable[str]) -> list["CalendarSource"]:
        """Build sources from an ordered list of feed URLs."""
        return [cls(url=url, source_index=index) for index, url in enumerate(urls)]


class RawFeedPayload(BaseModel):
    """Unparsed calendar document text plus the source it came from."""

    source: CalendarSource
    text: str = Field(..., repr=False)

    model_config = ConfigDict(frozen=True)


class Occurrence(BaseModel):
    """One concrete, time-bounded event instance after recurrence expansion."""

    start: datetime
    end: datetime
    title: str = NO_TITLE_PLACEHOLDER
    location: Optional[str] = None
    description: Optional[str] = None
    source_index: int = Field(default=0, ge=0, alias="sourceIndex")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("start", "end")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("occurrence instants must be timezone-aware")
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return NO_TITLE_PLACEHOLDER
        return value

    @field_validator("location", "description", mode="before")
    @classmethod
    def _blank_to_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_ordering(self) -> "Occurrence":
        if self.end < self.start:
            raise ValueError("occurrence end precedes start")
        return self

    @field_serializer("start", "end")
    def serialize_instant(self, dt: datetime) -> str:
        """Serialize instants as UTC ISO-8601."""
        return format_instant(dt)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the boundary shape; absent optional fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_api_dict(cls, data: Any) -> "Occurrence":
        """Parse one event from the boundary shape."""
        return cls.model_validate(data)


class PipelineResult(BaseModel):
    """Outcome of one fetch+parse+expand attempt for one source."""

    source: CalendarSource
    occurrences: tuple[Occurrence, ...] = ()
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        """True when the source produced a usable occurrence list."""
        return self.error is None

    @classmethod
    def ok(cls, source: CalendarSource, occurrences: Iterable[Occurrence]) -> "PipelineResult":
        """Build a successful result."""
        return cls(source=source, occurrences=tuple(occurrences))

    @classmethod
    def failed(cls, source: CalendarSource, error: str, kind: FailureKind) -> "PipelineResult":
        """Build a failed result carrying the failure reason."""
        return cls(source=source, error=error, failure_kind=kind)


class EventsResponse(BaseModel):
    """Response body of the ``/api/events`` boundary."""

    events: list[Occurrence] = Field(default_factory=list)
    error: Optional[str] = None
    warning: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_error(self) -> bool:
        """True when the response signals "no new data"."""
        return self.error is not None

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the boundary JSON shape."""
        body: dict[str, Any] = {"events": [event.to_api_dict() for event in self.events]}
        if self.error is not None:
            body["error"] = self.error
        if self.warning is not None:
            body["warning"] = self.warning
        return body

    @classmethod
    def from_api_dict(cls, data: Any) -> "EventsResponse":
        """Parse a boundary response.

        Raises:
            MalformedResponseError: If the payload is not a well-formed response
        """
        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            raise MalformedResponseError("response is missing an 'events' list")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"invalid events response: {e.error_count()} errors") from e
