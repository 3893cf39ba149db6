"""Immutable display state for the kiosk.

Every refresh produces a new ``DisplayState``; nothing is mutated in place, so
a renderer holding an older snapshot never sees a half-applied update.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, tzinfo

from hearthboard.calendar.models import Occurrence
from hearthboard.domain.day_buckets import DEFAULT_MIN_DAYS, DayBucket, bucketize
from hearthboard.weather.models import WeatherReport


@dataclass(frozen=True)
class Notice:
    """Non-blocking message shown alongside the events."""

    message: str
    is_error: bool = False


@dataclass(frozen=True)
class EventsSnapshot:
    """One set of events as received from the backend."""

    events: tuple[Occurrence, ...]
    received_at: datetime


@dataclass(frozen=True)
class DisplayState:
    """What the kiosk currently knows.

    ``current`` is the snapshot on screen; ``last_good`` is the most recent
    successful snapshot and only changes on success.
    """

    current: EventsSnapshot | None = None
    last_good: EventsSnapshot | None = None
    notice: Notice | None = None
    weather: WeatherReport | None = None
    weather_notice: Notice | None = None

    @property
    def has_events(self) -> bool:
        return self.current is not None

    def with_events(
        self, events: tuple[Occurrence, ...], received_at: datetime, warning: str | None = None
    ) -> DisplayState:
        """Replace the displayed events with a fresh successful snapshot."""
        snapshot = EventsSnapshot(events=tuple(events), received_at=received_at)
        notice = Notice(warning) if warning else None
        return replace(self, current=snapshot, last_good=snapshot, notice=notice)

    def with_failure(self, error: str) -> DisplayState:
        """Keep the last good events on screen and surface the failure as a notice."""
        return replace(self, current=self.last_good, notice=Notice(error, is_error=True))

    def with_weather(self, weather: WeatherReport) -> DisplayState:
        """Show a new report; a failed one keeps the last available report on screen."""
        if weather.error is None:
            return replace(self, weather=weather, weather_notice=None)
        notice = Notice(f"weather: {weather.error}", is_error=True)
        if self.weather is not None and self.weather.available:
            return replace(self, weather_notice=notice)
        return replace(self, weather=weather, weather_notice=notice)


@dataclass(frozen=True)
class DashboardView:
    """View model handed to the renderer."""

    buckets: tuple[DayBucket, ...]
    weather: WeatherReport | None
    notice: Notice | None
    event_count: int
    generated_at: datetime
    last_updated: datetime | None
    weather_notice: Notice | None = None

    @classmethod
    def build(
        cls,
        state: DisplayState,
        today: date,
        tz: tzinfo,
        generated_at: datetime,
        min_days: int = DEFAULT_MIN_DAYS,
    ) -> DashboardView:
        """Bucket the current snapshot's events into a renderable view."""
        events = state.current.events if state.current is not None else ()
        return cls(
            buckets=tuple(bucketize(events, today, tz, min_days=min_days)),
            weather=state.weather,
            notice=state.notice,
            event_count=len(events),
            generated_at=generated_at,
            last_updated=state.current.received_at if state.current is not None else None,
            weather_notice=state.weather_notice,
        )
