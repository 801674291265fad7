"""
Datetime utilities.

Provides timezone-aware datetime functions. Every "day" in the
application is a UTC calendar day.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def utc_today(clock: Clock = utc_now) -> date:
    """Get the current UTC calendar day."""
    return clock().astimezone(UTC).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """
    Get inclusive UTC bounds of a calendar day.

    Args:
        day: Calendar day

    Returns:
        Tuple of (00:00:00.000000, 23:59:59.999999) in UTC
    """
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = datetime.combine(day, time.max, tzinfo=UTC)
    return start, end


def previous_day(day: date) -> date:
    """Get the calendar day before day."""
    return day - timedelta(days=1)
