"""Plain-text renderer for the kiosk view model."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, time, tzinfo
from typing import TextIO

from hearthboard.domain.day_buckets import BucketEntry, DayBucket
from kiosk_ui.state import DashboardView

logger = logging.getLogger(__name__)

RULE = "-" * 40


def _is_all_day(entry: BucketEntry, tz: tzinfo) -> bool:
    start = entry.occurrence.start.astimezone(tz)
    end = entry.occurrence.end.astimezone(tz)
    return start.time() == time.min and end.time() == time.min and end > start


def _spans_one_day(entry: BucketEntry, tz: tzinfo) -> bool:
    start = entry.occurrence.start.astimezone(tz).date()
    end = entry.occurrence.end.astimezone(tz).date()
    return (end - start).days <= 1


def format_entry(entry: BucketEntry, tz: tzinfo) -> str:
    """One line per event: time range (or "All day"), title and location.

    A one-day all-day event also sits in the bucket of the midnight it ends
    on; it is shown as "All day" without the multi-day tag.
    """
    occurrence = entry.occurrence
    all_day = _is_all_day(entry, tz)
    if all_day:
        when = "All day"
    else:
        start = occurrence.start.astimezone(tz)
        end = occurrence.end.astimezone(tz)
        when = f"{start:%H:%M}-{end:%H:%M}"

    line = f"  {when:<11} {occurrence.title}"
    if occurrence.location:
        line += f" @ {occurrence.location}"
    if entry.is_multi_day and not (all_day and _spans_one_day(entry, tz)):
        line += " (multi-day)"
    return line


def format_bucket(bucket: DayBucket, tz: tzinfo, today: datetime | None = None) -> list[str]:
    header = f"{bucket.day:%a %b %d}"
    if today is not None and bucket.day == today.date():
        header += " (today)"
    lines = [header]
    if bucket.is_empty:
        lines.append("  No events")
    else:
        lines.extend(format_entry(entry, tz) for entry in bucket.entries)
    return lines


def format_view(view: DashboardView, tz: tzinfo) -> str:
    """Render a view model as text."""
    lines: list[str] = [RULE]

    weather = view.weather
    if weather is not None:
        current = weather.current
        temp = f"{current.temp}°F" if current.temp is not None else "--"
        high = weather.today.high if weather.today.high is not None else "--"
        low = weather.today.low if weather.today.low is not None else "--"
        lines.append(f"{current.icon} {temp} {current.condition}  H:{high} L:{low}")

    for notice in (view.weather_notice, view.notice):
        if notice is not None:
            prefix = "!" if notice.is_error else "i"
            lines.append(f"[{prefix}] {notice.message}")

    local_now = view.generated_at.astimezone(tz)
    for bucket in view.buckets:
        lines.extend(format_bucket(bucket, tz, today=local_now))

    updated = view.last_updated.astimezone(tz).strftime("%H:%M") if view.last_updated else "never"
    lines.append(f"{view.event_count} events, updated {updated}")
    lines.append(RULE)
    return "\n".join(lines)


class ConsoleRenderer:
    """Writes each view to a text stream."""

    def __init__(self, tz: tzinfo, stream: TextIO | None = None):
        self.tz = tz
        self.stream = stream or sys.stdout
        self.render_count = 0

    def render(self, view: DashboardView) -> None:
        self.stream.write(format_view(view, self.tz) + "\n")
        self.stream.flush()
        self.render_count += 1
        logger.debug("Rendered view #%d (%d buckets)", self.render_count, len(view.buckets))
