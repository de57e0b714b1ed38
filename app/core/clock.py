"""
Local-time helpers.

The school runs on one fixed UTC offset (``settings.TIMEZONE_OFFSET``).
Timestamps are stored in UTC; every "which day is this?" question is
answered in the local zone.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo

from app.core.config import settings


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``"+08:00"`` / ``"-05"`` into a fixed :class:`timezone`."""
    sign = 1 if tz_offset[0] == "+" else -1
    offset_parts = tz_offset[1:].split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def local_tz() -> timezone:
    return parse_offset(settings.TIMEZONE_OFFSET)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    return ensure_utc(dt).astimezone(tz or local_tz())


def local_date(dt: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of *dt* in the local zone."""
    return to_local(dt, tz).date()


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def local_today() -> date:
    return now_utc().astimezone(local_tz()).date()


def day_bounds_utc(start: date, end: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """UTC instants for local midnight of *start* and the end of *end* (exclusive)."""
    tz = tz or local_tz()
    lo = datetime.combine(start, datetime.min.time(), tzinfo=tz)
    hi = datetime.combine(end + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return lo.astimezone(timezone.utc), hi.astimezone(timezone.utc)
