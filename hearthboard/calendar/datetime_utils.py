"""Date and time helpers shared by the parser, merger and bucketizer."""

import logging
from datetime import UTC, date, datetime, time, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_timezone_aware(dt: datetime, default_tz: tzinfo = UTC) -> datetime:
    """Attach ``default_tz`` to naive datetimes, leave aware ones untouched."""
    if dt.tzinfo is None:
        return localize(dt, default_tz)
    return dt


def localize(naive: datetime, tz: tzinfo) -> datetime:
    """Attach a zone to a naive wall-clock datetime.

    pytz zones (still produced by some icalendar configurations) need
    ``localize()`` to pick the right UTC offset; zoneinfo zones work with
    ``replace()``.
    """
    localizer = getattr(tz, "localize", None)
    if callable(localizer):
        return localizer(naive)
    return naive.replace(tzinfo=tz)


def to_wall_time(value: Any, tz: tzinfo) -> datetime:
    """Convert an iCalendar DATE/DATE-TIME value into naive wall time in ``tz``.

    DATE values become local midnight. Aware datetimes are converted into
    ``tz`` first; floating (naive) datetimes are taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value
        return value.astimezone(tz).replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"Unsupported date value: {value!r}")


def format_instant(dt: datetime) -> str:
    """Serialize an instant as a UTC ISO-8601 string with a ``Z`` suffix."""
    utc_value = ensure_timezone_aware(dt).astimezone(UTC)
    return utc_value.isoformat().replace("+00:00", "Z")


def local_date(dt: datetime, tz: tzinfo) -> date:
    """Return the calendar date of an instant as seen in ``tz``."""
    return ensure_timezone_aware(dt).astimezone(tz).date()


def system_timezone() -> tzinfo:
    """Return the host's local time zone."""
    local_tz = datetime.now().astimezone().tzinfo
    return local_tz if local_tz is not None else UTC


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA zone name, falling back to the host zone.

    Args:
        name: IANA zone identifier such as ``America/Chicago``, or None

    Returns:
        The matching zone, or the system zone when unset or unknown
    """
    if not name:
        return system_timezone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using system timezone", name)
        return system_timezone()
