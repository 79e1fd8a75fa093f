"""
Slot conflict checking shared by live validation and the booking commit.

``is_time_slot_available`` is the single rule deciding whether a candidate
interval can be booked on a day. The quote path (``pawbook.engine``) and the
authoritative commit path (``pawbook.tools.booking``) both import it from
here, so the two can never disagree.

Intervals are minute offsets within one day and overlap strictly
(``start_a < end_b and end_a > start_b``): back-to-back bookings touch
without conflicting.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from pawbook.schemas.availability_schema import AvailabilityDay, DaySnapshot, TimeWindow
from pawbook.utils import MINUTES_PER_DAY, minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)

DayLike = Union[DaySnapshot, AvailabilityDay]


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def effective_interval(
    start_minutes: int, duration_minutes: int, buffer_before: int = 0, buffer_after: int = 0
) -> tuple[int, int]:
    """Candidate interval widened by the preparation buffers."""
    return start_minutes - buffer_before, start_minutes + duration_minutes + buffer_after


def padded_window(
    start_time: str, end_time: str, buffer_before: int = 0, buffer_after: int = 0
) -> TimeWindow:
    """Committed interval with its buffers folded in, clamped to the day."""
    start = max(0, parse_time_to_minutes(start_time) - buffer_before)
    end = min(MINUTES_PER_DAY, parse_time_to_minutes(end_time) + buffer_after)
    return TimeWindow(start_time=minutes_to_time(start), end_time=minutes_to_time(end))


def is_time_slot_available(
    candidate_start: str,
    duration_minutes: int,
    day: DayLike,
    buffer_before: int = 0,
    buffer_after: int = 0,
) -> bool:
    """
    Decide whether a candidate slot can be booked on ``day``.

    Args:
        candidate_start: Start time, ``HH:MM``.
        duration_minutes: Length of the booked service itself.
        day: Snapshot carrying published ``time_slots`` and committed
            ``booked_slots`` (whose buffers are already folded in).
        buffer_before: Preparation minutes required before the candidate.
        buffer_after: Travel/cleanup minutes required after the candidate.

    Returns:
        True only if the buffered candidate fits a published window (when
        the day publishes any) and overlaps no committed slot.
    """
    start, end = effective_interval(
        parse_time_to_minutes(candidate_start), duration_minutes, buffer_before, buffer_after
    )

    if day.time_slots and not any(
        start >= window.start_minutes and end <= window.end_minutes
        for window in day.time_slots
    ):
        logger.debug("%s %s outside published windows", day.date, candidate_start)
        return False

    for booked in day.booked_slots:
        if intervals_overlap(start, end, booked.start_minutes, booked.end_minutes):
            logger.debug(
                "%s %s conflicts with booked %s-%s",
                day.date, candidate_start, booked.start_time, booked.end_time,
            )
            return False

    return True


@dataclass(frozen=True)
class BookingSpan:
    """Date range of a committed booking with optional same-day times.

    Snapshots turn spans into blocked windows; a multi-day or time-less span
    blocks whole days.
    """

    start_date: date
    end_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @property
    def is_multi_day(self) -> bool:
        return self.start_date != self.end_date


def is_slot_bookable(
    day: date, start_time: str, now: datetime, lead_time_hours: int
) -> bool:
    """A past day is never bookable; today needs ``lead_time_hours`` of notice."""
    today = now.date()
    if day < today:
        return False
    if day > today:
        return True
    current = now.hour * 60 + now.minute
    return parse_time_to_minutes(start_time) >= current + lead_time_hours * 60


def candidate_start_times(
    window_start: str, window_end: str, duration_minutes: int, step_minutes: int
) -> list[str]:
    """Start times every ``step_minutes`` whose service fits inside the window."""
    start = parse_time_to_minutes(window_start)
    end = parse_time_to_minutes(window_end)
    times = []
    while start + duration_minutes <= end:
        times.append(minutes_to_time(start))
        start += step_minutes
    return times
