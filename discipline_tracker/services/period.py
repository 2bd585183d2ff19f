"""
Week boundary arithmetic.

Weeks run Monday 00:00:00 to Sunday 23:59:59.999 in one configured IANA zone,
the same zone the scheduler fires in. Aware instants are converted into that
zone before their calendar day is taken; naive instants are read as local
wall-clock time and results stay naive.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo

from ..domain.disciplines import Weekday

WEEK_END_TIME = time(23, 59, 59, 999000)


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    if name is None:
        from ..core.config import get_settings

        name = get_settings().timezone
    return ZoneInfo(name)


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(tz or get_zone())


def today(tz: Optional[tzinfo] = None) -> date:
    return now_local(tz).date()


def to_local(instant: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Aware instants are moved into the zone; naive ones are returned as-is."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(tz or get_zone())


def to_wall_clock(instant: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Naive local wall-clock form, used as the storage key."""
    return to_local(instant, tz).replace(tzinfo=None)


def week_start(instant: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Monday at local midnight of the week containing ``instant``."""
    local = to_local(instant, tz) if instant is not None else now_local(tz)
    monday = local.date() - timedelta(days=local.weekday())
    return datetime.combine(monday, time.min, tzinfo=local.tzinfo)


def week_end(start: datetime) -> datetime:
    """Sunday 23:59:59.999 of the week beginning at ``start``."""
    sunday = start.date() + timedelta(days=6)
    return datetime.combine(sunday, WEEK_END_TIME, tzinfo=start.tzinfo)


def week_dates(start: datetime) -> List[date]:
    """The seven calendar dates of the week, Monday first."""
    first = start.date()
    return [first + timedelta(days=i) for i in range(7)]


def weekdays_through(day: date) -> List[Weekday]:
    """Monday .. ``day``'s weekday inclusive, Monday-first."""
    return [Weekday(i) for i in range(day.weekday() + 1)]


def weekdays_through_today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> List[Weekday]:
    """Weekdays of the current week that have already started."""
    local = to_local(now, tz) if now is not None else now_local(tz)
    return weekdays_through(local.date())
