from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from agenda.core.config import settings


@lru_cache(maxsize=8)
def get_local_zone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.TIMEZONE)


def to_local_naive(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert ``dt`` to local wall-clock time without tzinfo.

    Naive datetimes are taken to already be local.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_local_zone(tz_name)).replace(tzinfo=None)


def localize(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Attach the local timezone to a naive wall-clock datetime."""
    if dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=get_local_zone(tz_name))


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current local wall-clock time, naive."""
    return datetime.now(get_local_zone(tz_name)).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Start of ``day`` and start of the following day (exclusive end)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
