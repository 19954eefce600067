from datetime import datetime
from zoneinfo import ZoneInfo

from bartab.core.config import VENUE_TIMEZONE


def venue_now() -> datetime:
    """Current time in the venue's timezone. The only place the engine's callers read the clock."""
    return datetime.now(ZoneInfo(VENUE_TIMEZONE))


def as_venue_time(value: datetime) -> datetime:
    """Naive datetimes (e.g. from query strings) are read as venue-local time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=ZoneInfo(VENUE_TIMEZONE))
    return value
