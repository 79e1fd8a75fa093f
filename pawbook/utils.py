"""Shared time, date and money helpers used across the booking engine."""

import calendar
import math
from datetime import date, timedelta

MINUTES_PER_DAY = 24 * 60


def parse_time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight.

    Examples:
        >>> parse_time_to_minutes("08:30")
        510
        >>> parse_time_to_minutes("24:00")
        1440
    """
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM`` (no wrap-around)."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes_to_time(value: str, minutes: int) -> str:
    """Add minutes to an ``HH:MM`` time, wrapping past midnight."""
    total = (parse_time_to_minutes(value) + minutes) % MINUTES_PER_DAY
    return minutes_to_time(total)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def dates_between(start: date, end: date) -> list[date]:
    """Inclusive list of calendar days from start to end."""
    return [start + timedelta(days=offset) for offset in range(days_between(start, end) + 1)]


def month_dates(year: int, month: int) -> list[date]:
    """Every calendar day of the given month."""
    _, last_day = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, last_day + 1)]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` is banker's rounding; displayed partial sums need the
    schoolbook rule so ``round_half_up(2.5) == 3``.
    """
    return int(math.floor(value + 0.5))
