"""
In-memory calendar snapshot source.

Aggregates announcer-set availability and committed bookings into the
``DaySnapshot`` records the calendar builder classifies. In production this
is the data store query that runs whenever the displayed month changes.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from pawbook.schemas.availability_schema import DaySnapshot, DayStatus, TimeWindow
from pawbook.schemas.service_schema import ServiceConfig
from pawbook.scheduling.conflicts import BookingSpan, padded_window
from pawbook.utils import month_dates

logger = logging.getLogger(__name__)

# (announcer_id, date) -> (status, published windows)
_availability: dict[tuple[str, date], tuple[DayStatus, list[TimeWindow]]] = {}


def set_availability(
    announcer_id: str,
    day: date,
    status: DayStatus,
    time_slots: Optional[list[TimeWindow]] = None,
) -> None:
    """Record an announcer's manual status for a day."""
    if status == DayStatus.PAST:
        raise ValueError("'past' is derived from the reference date and cannot be set")
    _availability[(announcer_id, day)] = (status, list(time_slots or []))
    logger.info("Availability for %s on %s set to %s", announcer_id, day, status.value)


def clear_availability(announcer_id: str, day: date) -> None:
    """Revert a day to the default (available) state."""
    _availability.pop((announcer_id, day), None)


def _span_window(span: BookingSpan, day: date, config: ServiceConfig) -> Optional[TimeWindow]:
    if not span.start_date <= day <= span.end_date:
        return None
    buffer_before, buffer_after = config.blocking_buffers
    if span.is_multi_day or not (span.start_time and span.end_time):
        return padded_window("00:00", "24:00")
    return padded_window(span.start_time, span.end_time, buffer_before, buffer_after)


def build_day_snapshot(
    announcer_id: str,
    day: date,
    config: ServiceConfig,
    bookings: Iterable[tuple[BookingSpan, int]],
) -> DaySnapshot:
    """
    Fold bookings into one day's snapshot.

    Args:
        bookings: (span, participant count) pairs of active bookings of
            this announcer's service category.
    """
    status, windows = _availability.get((announcer_id, day), (None, []))
    booked_slots = []
    booked_count = 0
    for span, participants in bookings:
        window = _span_window(span, day, config)
        if window is None:
            continue
        booked_slots.append(window)
        booked_count += participants

    return DaySnapshot(
        date=day,
        seed_status=status,
        time_slots=windows if status == DayStatus.PARTIAL else [],
        booked_slots=booked_slots,
        booked_count=booked_count,
    )


def get_day_snapshot(announcer_id: str, day: date, config: ServiceConfig) -> DaySnapshot:
    """Snapshot of one day from the current booking store."""
    from pawbook.tools.booking import active_spans

    return build_day_snapshot(announcer_id, day, config, active_spans(announcer_id, config.category))


def get_month_snapshot(
    announcer_id: str, year: int, month: int, config: ServiceConfig
) -> list[DaySnapshot]:
    """Snapshots for every day of a month, as fetched on month change."""
    from pawbook.tools.booking import active_spans

    spans = active_spans(announcer_id, config.category)
    return [build_day_snapshot(announcer_id, day, config, spans) for day in month_dates(year, month)]


def reset() -> None:
    """Clear announcer availability. Used by test fixtures for isolation."""
    _availability.clear()
