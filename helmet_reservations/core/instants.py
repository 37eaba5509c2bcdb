"""
Normalization of schedule timestamps.

Schedules reach us in whatever shape the scheduling side stored them: native
store timestamps, ``{"seconds": ..., "nanoseconds": ...}`` mappings, plain
dates, epoch milliseconds or ISO-8601 strings. Everything goes through
``to_instant`` so the rest of the code only sees aware datetimes.
"""
from __future__ import annotations
import logging
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

def studio_tz(name: str) -> tzinfo:
    return ZoneInfo(name)

def _localize(dt: datetime, tz: tzinfo) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt

def _from_seconds(seconds: Any, nanos: Any = 0) -> datetime:
    return datetime.fromtimestamp(float(seconds) + float(nanos or 0) / 1e9, tz=timezone.utc)

def to_instant(value: Any, tz: tzinfo = timezone.utc) -> datetime | None:
    """Return an aware datetime for value, or None if it cannot be read as one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            return _localize(value, tz)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=tz)
        for attr in ("to_datetime", "ToDatetime"):
            fn = getattr(value, attr, None)
            if callable(fn):
                return _localize(fn(), tz)
        if isinstance(value, Mapping):
            if "seconds" in value:
                return _from_seconds(value["seconds"], value.get("nanoseconds", 0))
            if "_seconds" in value:
                return _from_seconds(value["_seconds"], value.get("_nanoseconds", 0))
            return None
        if isinstance(value, (int, float)):
            # epoch milliseconds, the way the front-end serializes dates
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            return _localize(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)
    except (ValueError, TypeError, OverflowError, OSError) as exc:
        logger.debug("Unparseable timestamp %r: %s", value, exc)
        return None
    return None

def parse_day(value: str, field: str) -> date:
    """Parse a YYYY-MM-DD (or full ISO) filter date; raises ValueError naming the field."""
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid {field}: {value!r}")

def day_bounds(start: date | None, end: date | None, tz: tzinfo) -> tuple[datetime | None, datetime | None]:
    """Start of the first day and last millisecond of the last day, in tz."""
    lo = datetime.combine(start, time.min, tzinfo=tz) if start else None
    hi = (
        datetime.combine(end, time.min, tzinfo=tz) + timedelta(days=1) - timedelta(milliseconds=1)
        if end else None
    )
    return lo, hi
