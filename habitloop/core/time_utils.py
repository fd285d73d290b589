"""
Calendar normalization.

Every date comparison in the project goes through this module. A "day key"
is a ``datetime.date`` holding the local calendar day of an instant in the
configured zone (``settings.TIMEZONE``).
"""
import calendar
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from habitloop.core.config import settings

UTC = ZoneInfo("UTC")

DayLike = Union[date, datetime]


def local_zone(tz: Optional[ZoneInfo] = None) -> ZoneInfo:
    return tz or ZoneInfo(settings.TIMEZONE)


def get_current_time(tz: Optional[ZoneInfo] = None) -> datetime:
    """Returns the current time in the configured zone."""
    return datetime.now(local_zone(tz))


def to_local(dt: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Converts a datetime object to the configured zone."""
    if dt.tzinfo is None:
        # Assume naive datetimes from DB are UTC
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(local_zone(tz))


def day_key(instant: DayLike, tz: Optional[ZoneInfo] = None) -> date:
    """
    Strips the time of day from ``instant``.

    Aware datetimes are first converted into the local zone, so two instants
    on the same local calendar day always give the same key. Naive datetimes
    are read as local wall-clock time. Plain dates are already keys.
    """
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(local_zone(tz))
        return instant.date()
    return instant


def current_day(now: Optional[DayLike] = None, tz: Optional[ZoneInfo] = None) -> date:
    if now is None:
        now = get_current_time(tz)
    return day_key(now, tz)


def is_today(day: DayLike, now: Optional[DayLike] = None, tz: Optional[ZoneInfo] = None) -> bool:
    return day_key(day, tz) == current_day(now, tz)


def is_future(day: DayLike, now: Optional[DayLike] = None, tz: Optional[ZoneInfo] = None) -> bool:
    return day_key(day, tz) > current_day(now, tz)


def add_days(day: date, n: int) -> date:
    return day + timedelta(days=n)


def add_weeks(day: date, n: int) -> date:
    return day + timedelta(weeks=n)


def add_months(day: date, n: int) -> date:
    """Moves ``n`` months, clamping to the last day of the target month (Jan 31 + 1 -> Feb 28/29)."""
    month_index = day.year * 12 + (day.month - 1) + n
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def month_interval(reference: DayLike) -> Tuple[date, int]:
    """First day and number of days of the month containing ``reference``."""
    ref = day_key(reference)
    start = ref.replace(day=1)
    return start, calendar.monthrange(start.year, start.month)[1]


def month_days(reference: DayLike) -> List[date]:
    start, day_count = month_interval(reference)
    return [add_days(start, offset) for offset in range(day_count)]


def week_interval(reference: DayLike) -> List[date]:
    """The 7 consecutive days of the Sunday-based week containing ``reference``."""
    ref = day_key(reference)
    start = add_days(ref, -weekday_index(ref))
    return [add_days(start, offset) for offset in range(7)]
