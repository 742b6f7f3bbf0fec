"""
General helper utilities - date windows and completion metrics
"""
import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

WINDOWS = ("all", "today", "week", "month", "upcoming")


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored"""
    return datetime.utcnow()


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC; naive values pass through"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Resolve an IANA zone name. None or empty means UTC days."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{name}'") from e


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def _window_bounds(window: str, now: datetime) -> Optional[tuple[datetime, datetime]]:
    if window == "today":
        return start_of_day(now), end_of_day(now)
    if window == "week":
        days_to_sunday = 7 - (now.weekday() + 1) % 7
        return now, end_of_day(now + timedelta(days=days_to_sunday))
    if window == "month":
        last_day = calendar.monthrange(now.year, now.month)[1]
        return now, end_of_day(now.replace(day=last_day))
    if window == "upcoming":
        return now + timedelta(microseconds=1), now + timedelta(days=7)
    if window == "all":
        return None
    raise ValueError(f"Unknown window '{window}'. Must be one of: {', '.join(WINDOWS)}")


def get_date_range(
    window: str = "all",
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[tuple[datetime, datetime]]:
    """Get the inclusive due-date bounds for a list window.

    Returns None for "all" (no bounds). Weeks end on Sunday; when today is
    Sunday the window runs through the following Sunday.

    ``now`` is naive UTC. Day edges for today/week/month are cut on UTC days
    unless ``tz`` is given, in which case they follow the caller's local
    calendar. Bounds are always returned as naive UTC to match stored values.
    """
    now = now or utcnow()
    if tz is None:
        return _window_bounds(window, now)

    bounds = _window_bounds(window, now.replace(tzinfo=timezone.utc).astimezone(tz))
    if bounds is None:
        return None
    start, end = bounds
    return to_naive_utc(start), to_naive_utc(end)


def get_period_start(period: str = "week", now: Optional[datetime] = None) -> datetime:
    """Get the start of a statistics period ending now"""
    now = now or utcnow()
    if period == "month":
        return now - timedelta(days=30)
    if period == "year":
        return now - timedelta(days=365)
    return now - timedelta(days=7)


def completion_percentage(completed: int, total: int) -> int:
    """Whole-number percentage of completed tasks; 0 when there are none"""
    if total <= 0:
        return 0
    return round(completed / total * 100)


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 1)
