"""ICS parsing and recurrence expansion.

Turns one raw feed document into the concrete occurrences that overlap a time
window. Recurring events are expanded with ``dateutil.rrule`` in the event's
own wall-clock zone, so a 07:30 weekly meeting stays at 07:30 across DST
changes.
"""

import logging
from collections import defaultdict
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from time import monotonic
from typing import Any, Optional

from dateutil.relativedelta import relativedelta
from dateutil.rrule import rruleset, rrulestr
from icalendar import Calendar, Component
from icalendar.prop import vRecur

from .datetime_utils import localize, system_timezone, to_wall_time
from .exceptions import FeedParseError
from .models import Occurrence, RawFeedPayload

logger = logging.getLogger(__name__)

DEFAULT_MAX_EXPANSIONS = 2000
DEFAULT_TIME_BUDGET_MS = 200

# Slack applied to wall-clock bounds so UTC offset differences never drop an
# instance; the exact overlap test runs on aware instants afterwards.
_WALL_CLOCK_MARGIN = timedelta(days=1)

_SKIPPABLE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, OverflowError)

_FIXED_STEPS = {
    "SECONDLY": timedelta(seconds=1),
    "MINUTELY": timedelta(minutes=1),
    "HOURLY": timedelta(hours=1),
    "DAILY": timedelta(days=1),
    "WEEKLY": timedelta(weeks=1),
}
_DAY_SELECTORS = ("BYMONTHDAY", "BYDAY", "BYYEARDAY", "BYWEEKNO")


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(component: Component, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    return str(value)


def _is_cancelled(component: Component) -> bool:
    return str(component.get("STATUS", "")).strip().upper() == "CANCELLED"


def _date_values(component: Component, name: str) -> Iterator[Any]:
    """Yield the raw date/datetime values of a multi-valued property (EXDATE, RDATE)."""
    for prop in _as_list(component.get(name)):
        for item in getattr(prop, "dts", []):
            value = item.dt
            # RDATE;VALUE=PERIOD yields (start, end-or-duration)
            if isinstance(value, tuple):
                value = value[0]
            yield value


def _first(rule: vRecur, key: str, default: Any = None) -> Any:
    values = _as_list(rule.get(key))
    return values[0] if values else default


def fast_forward(rule: vRecur, wall_start: datetime, lower: datetime) -> datetime:
    """Move a rule's DTSTART to the last period boundary at or before ``lower``.

    Only rules without COUNT are moved, since COUNT is measured from the
    original DTSTART. Values dateutil would otherwise infer from DTSTART
    (day of month, month of year) are pinned on ``rule`` first so the shifted
    rule yields the same instances.

    Returns:
        The DTSTART to expand from (``wall_start`` when no shift applies)
    """
    if wall_start >= lower or rule.get("COUNT") is not None:
        return wall_start

    freq = str(_first(rule, "FREQ", "")).upper()
    interval = max(1, int(_first(rule, "INTERVAL", 1)))

    if freq in _FIXED_STEPS:
        step = _FIXED_STEPS[freq] * interval
        return wall_start + step * ((lower - wall_start) // step)

    if freq == "MONTHLY":
        if not any(rule.get(key) is not None for key in _DAY_SELECTORS):
            rule["BYMONTHDAY"] = [wall_start.day]
        months = (lower.year - wall_start.year) * 12 + lower.month - wall_start.month
        periods = months // interval
        shifted = wall_start + relativedelta(months=periods * interval)
        while periods > 0 and shifted > lower:
            periods -= 1
            shifted = wall_start + relativedelta(months=periods * interval)
        return shifted

    if freq == "YEARLY":
        if not any(rule.get(key) is not None for key in ("BYMONTH", "BYWEEKNO", "BYYEARDAY")):
            rule["BYMONTH"] = [wall_start.month]
        if not any(rule.get(key) is not None for key in _DAY_SELECTORS):
            rule["BYMONTHDAY"] = [wall_start.day]
        periods = (lower.year - wall_start.year) // interval
        shifted = wall_start + relativedelta(years=periods * interval)
        while periods > 0 and shifted > lower:
            periods -= 1
            shifted = wall_start + relativedelta(years=periods * interval)
        return shifted

    return wall_start


def load_calendars(text: str) -> list[Calendar]:
    """Parse an ICS document.

    Raises:
        FeedParseError: If the text is not a parsable iCalendar document
    """
    try:
        components = Calendar.from_ical(text, multiple=True)
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise FeedParseError(f"unparsable calendar document: {e}") from e

    calendars = [c for c in components if getattr(c, "name", None) == "VCALENDAR"]
    if not calendars:
        raise FeedParseError("document contains no VCALENDAR component")
    return calendars


class FeedParser:
    """Parses ICS text and expands recurring events into windowed occurrences."""

    def __init__(
        self,
        max_expansions: int = DEFAULT_MAX_EXPANSIONS,
        default_timezone: Optional[tzinfo] = None,
        time_budget_ms: int = DEFAULT_TIME_BUDGET_MS,
    ) -> None:
        """Initialize the parser.

        Args:
            max_expansions: Maximum instances iterated per recurring event
            default_timezone: Zone for all-day and floating values (host zone when omitted)
            time_budget_ms: Wall-clock budget for expanding one recurring event
        """
        if max_expansions < 1:
            raise ValueError("max_expansions must be at least 1")
        if time_budget_ms < 1:
            raise ValueError("time_budget_ms must be at least 1")
        self.max_expansions = max_expansions
        self.time_budget_ms = time_budget_ms
        self.default_timezone = default_timezone or system_timezone()

    def parse(
        self, payload: RawFeedPayload, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]:
        """Parse a feed and return occurrences overlapping ``[window_start, window_end)``.

        Singles come first in document order, followed by each recurring
        event's instances in chronological order.

        Raises:
            FeedParseError: If the document as a whole cannot be parsed
        """
        source_index = payload.source.source_index
        events: list[Component] = []
        for calendar in load_calendars(payload.text):
            events.extend(calendar.walk("VEVENT"))

        masters: list[Component] = []
        candidates: list[Component] = []
        for event in events:
            if event.get("RECURRENCE-ID") is None and (
                event.get("RRULE") is not None or event.get("RDATE") is not None
            ):
                masters.append(event)
            else:
                candidates.append(event)

        master_uids = {str(m.get("UID", "")) for m in masters}
        overrides: dict[str, list[Component]] = defaultdict(list)
        singles: list[Component] = []
        for event in candidates:
            uid = str(event.get("UID", ""))
            if event.get("RECURRENCE-ID") is not None and uid in master_uids:
                overrides[uid].append(event)
            else:
                singles.append(event)

        occurrences: list[Occurrence] = []
        skipped = 0

        for event in singles:
            try:
                occurrence = self._single_occurrence(event, source_index)
            except _SKIPPABLE_ERRORS as e:
                skipped += 1
                logger.warning("Skipping malformed event in %s: %s", payload.source.display_name, e)
                continue
            if occurrence is not None and _overlaps(occurrence, window_start, window_end):
                occurrences.append(occurrence)

        for master in masters:
            uid = str(master.get("UID", ""))
            try:
                occurrences.extend(
                    self._expand_master(master, overrides.get(uid, []), source_index, window_start, window_end)
                )
            except _SKIPPABLE_ERRORS as e:
                skipped += 1
                logger.warning(
                    "Skipping malformed recurring event in %s: %s", payload.source.display_name, e
                )

        logger.debug(
            "Parsed %s: %d events, %d recurring, %d occurrences in window, %d skipped",
            payload.source.display_name,
            len(events),
            len(masters),
            len(occurrences),
            skipped,
        )
        return occurrences

    def _zone_for(self, value: Any) -> tzinfo:
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.tzinfo
        return self.default_timezone

    @staticmethod
    def _wall_duration(component: Component, start_value: Any, zone: tzinfo) -> timedelta:
        dtend = component.get("DTEND")
        if dtend is not None:
            return to_wall_time(dtend.dt, zone) - to_wall_time(start_value, zone)
        duration = component.get("DURATION")
        if duration is not None:
            return duration.dt
        if isinstance(start_value, datetime):
            return timedelta(0)
        return timedelta(days=1)

    def _build(
        self,
        component: Component,
        wall_start: datetime,
        duration: timedelta,
        zone: tzinfo,
        source_index: int,
    ) -> Occurrence:
        return Occurrence(
            start=localize(wall_start, zone),
            end=localize(wall_start + duration, zone),
            title=_text(component, "SUMMARY"),
            location=_text(component, "LOCATION"),
            description=_text(component, "DESCRIPTION"),
            source_index=source_index,
        )

    def _single_occurrence(self, component: Component, source_index: int) -> Optional[Occurrence]:
        dtstart = component.get("DTSTART")
        if dtstart is None:
            logger.debug("Ignoring VEVENT without DTSTART (uid=%s)", component.get("UID"))
            return None
        start_value = dtstart.dt
        zone = self._zone_for(start_value)
        duration = self._wall_duration(component, start_value, zone)
        return self._build(component, to_wall_time(start_value, zone), duration, zone, source_index)

    def _recurrence_set(
        self, master: Component, wall_start: datetime, zone: tzinfo, lower: datetime
    ) -> rruleset:
        """Build the instance set, skipping everything that ends before ``lower``."""
        rules = rruleset()
        # DTSTART always counts as the first instance; rruleset drops duplicates.
        if wall_start >= lower:
            rules.rdate(wall_start)

        for recur in _as_list(master.get("RRULE")):
            normalized = vRecur(recur)
            until_values = _as_list(normalized.get("UNTIL"))
            if until_values:
                until = until_values[0]
                if isinstance(until, datetime):
                    normalized["UNTIL"] = [to_wall_time(until, zone)]
                elif isinstance(until, date):
                    normalized["UNTIL"] = [datetime.combine(until, time.max.replace(microsecond=0))]
            rule_start = fast_forward(normalized, wall_start, lower)
            rule_text = normalized.to_ical().decode("utf-8")
            rules.rrule(rrulestr(rule_text, dtstart=rule_start))

        for value in _date_values(master, "RDATE"):
            extra = to_wall_time(value, zone)
            if extra >= lower:
                rules.rdate(extra)
        for value in _date_values(master, "EXDATE"):
            rules.exdate(to_wall_time(value, zone))
        return rules

    def _expand_master(
        self,
        master: Component,
        overrides: list[Component],
        source_index: int,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Occurrence]:
        start_value = master.get("DTSTART").dt
        zone = self._zone_for(start_value)
        wall_start = to_wall_time(start_value, zone)
        duration = self._wall_duration(master, start_value, zone)
        if duration < timedelta(0):
            raise ValueError("recurring event ends before it starts")

        pending: dict[datetime, Component] = {}
        for override in overrides:
            pending[to_wall_time(override.get("RECURRENCE-ID").dt, zone)] = override

        lower = to_wall_time(window_start, zone) - duration - _WALL_CLOCK_MARGIN
        upper = to_wall_time(window_end, zone) + _WALL_CLOCK_MARGIN

        results: list[Occurrence] = []
        generated = 0
        started = monotonic()
        for instance in self._recurrence_set(master, wall_start, zone, lower):
            if instance >= upper:
                break
            if generated >= self.max_expansions:
                logger.warning(
                    "Recurring event %r hit the expansion cap of %d instances; later instances dropped",
                    _text(master, "SUMMARY") or master.get("UID"),
                    self.max_expansions,
                )
                break
            elapsed_ms = (monotonic() - started) * 1000
            if elapsed_ms > self.time_budget_ms:
                logger.warning(
                    "Recurring event %r exceeded the expansion time budget (%dms > %dms) after %d instances",
                    _text(master, "SUMMARY") or master.get("UID"),
                    elapsed_ms,
                    self.time_budget_ms,
                    generated,
                )
                break
            generated += 1
            if instance < lower:
                continue

            override = pending.pop(instance, None)
            try:
                if override is not None:
                    if _is_cancelled(override):
                        continue
                    occurrence = self._single_occurrence(override, source_index)
                else:
                    occurrence = self._build(master, instance, duration, zone, source_index)
            except _SKIPPABLE_ERRORS as e:
                logger.warning("Skipping malformed instance %s of %r: %s", instance, master.get("UID"), e)
                continue
            if occurrence is not None and _overlaps(occurrence, window_start, window_end):
                results.append(occurrence)

        # Overrides for instances outside the iterated range may have moved into the window.
        for override in pending.values():
            if _is_cancelled(override):
                continue
            try:
                occurrence = self._single_occurrence(override, source_index)
            except _SKIPPABLE_ERRORS as e:
                logger.warning("Skipping malformed override of %r: %s", master.get("UID"), e)
                continue
            if occurrence is not None and _overlaps(occurrence, window_start, window_end):
                results.append(occurrence)

        results.sort(key=lambda occurrence: occurrence.start)
        return results


def _overlaps(occurrence: Occurrence, window_start: datetime, window_end: datetime) -> bool:
    return occurrence.end > window_start and occurrence.start < window_end
