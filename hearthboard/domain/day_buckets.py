"""Group occurrences into local calendar-day buckets for display."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo

from ..calendar.models import Occurrence

DEFAULT_MIN_DAYS = 4


@dataclass(frozen=True)
class BucketEntry:
    """One occurrence placed in a day bucket."""

    occurrence: Occurrence
    is_multi_day: bool = False


@dataclass(frozen=True)
class DayBucket:
    """Occurrences touching one local calendar date, ordered by start."""

    day: date
    entries: tuple[BucketEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries


def local_day_span(occurrence: Occurrence, tz: tzinfo) -> tuple[date, date]:
    """Return the (start-day, end-day) local dates of an occurrence.

    Both instants are truncated to their local date, so an event ending at
    exactly midnight also touches the date that midnight begins.
    """
    first = occurrence.start.astimezone(tz).date()
    last = max(first, occurrence.end.astimezone(tz).date())
    return first, last


def is_multi_day(occurrence: Occurrence, tz: tzinfo) -> bool:
    """True when the occurrence touches more than one local date."""
    first, last = local_day_span(occurrence, tz)
    return last > first


def bucketize(
    events: Iterable[Occurrence],
    today: date,
    tz: tzinfo,
    min_days: int = DEFAULT_MIN_DAYS,
) -> list[DayBucket]:
    """Assign occurrences to every local date they touch.

    The buckets for ``today`` through ``today + min_days - 1`` always exist,
    even when empty. Multi-day occurrences appear in each touched date and
    may create buckets outside that range.

    Args:
        events: Occurrences in any order
        today: First seeded date
        tz: Zone used to compute local dates
        min_days: Number of consecutive seeded dates

    Returns:
        Buckets sorted by date, entries within each bucket sorted by start
    """
    grouped: dict[date, list[BucketEntry]] = {
        today + timedelta(days=offset): [] for offset in range(max(0, min_days))
    }

    for occurrence in events:
        first, last = local_day_span(occurrence, tz)
        entry = BucketEntry(occurrence=occurrence, is_multi_day=last > first)
        day = first
        while day <= last:
            grouped.setdefault(day, []).append(entry)
            day += timedelta(days=1)

    return [
        DayBucket(
            day=day,
            entries=tuple(sorted(entries, key=lambda entry: entry.occurrence.start)),
        )
        for day, entries in sorted(grouped.items())
    ]
