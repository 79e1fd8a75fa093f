"""
Availability calendar classification for one displayed month.

Takes the per-day snapshots produced by the store query and classifies each
day as available, partial, unavailable or past. ``today`` (and optionally
``now``, for the same-day lead time) are explicit parameters; nothing here
reads the wall clock or fetches bookings.

Usage:
    days = month_snapshots(2026, 11, snapshots)
    calendar = build_month_calendar(days, today=date(2026, 11, 3), config=config)
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from pawbook.config import settings
from pawbook.schemas.availability_schema import (
    AvailabilityDay,
    Capacity,
    DaySnapshot,
    DayStatus,
)
from pawbook.schemas.service_schema import ServiceConfig, ServiceVariant
from pawbook.scheduling.conflicts import (
    candidate_start_times,
    is_slot_bookable,
    is_time_slot_available,
)
from pawbook.utils import month_dates

logger = logging.getLogger(__name__)


def month_snapshots(year: int, month: int, snapshots: Iterable[DaySnapshot]) -> list[DaySnapshot]:
    """One snapshot per day of the month; days the query omitted are empty."""
    by_date = {snap.date: snap for snap in snapshots}
    return [by_date.get(day) or DaySnapshot(date=day) for day in month_dates(year, month)]


def blocking_duration(
    config: ServiceConfig,
    variant: Optional[ServiceVariant] = None,
    step_minutes: Optional[int] = None,
) -> int:
    """Minutes a booking occupies when probing a day for free slots."""
    if config.enable_duration_based_blocking and variant is not None and variant.duration:
        return variant.duration
    return step_minutes or settings.schedule.time_step_minutes


def bookable_start_times(
    day: DaySnapshot,
    config: ServiceConfig,
    duration_minutes: int,
    now: Optional[datetime] = None,
    step_minutes: Optional[int] = None,
) -> tuple[list[str], int]:
    """
    Start times on ``day`` that pass the slot conflict checker.

    Returns:
        (bookable times, number of candidates probed)
    """
    step = step_minutes or settings.schedule.time_step_minutes
    buffer_before, buffer_after = config.blocking_buffers
    candidates = candidate_start_times(
        config.day_start_time, config.day_end_time, duration_minutes, step
    )
    lead_time = settings.schedule.min_booking_lead_time_hours
    bookable = [
        start
        for start in candidates
        if is_time_slot_available(start, duration_minutes, day, buffer_before, buffer_after)
        and (now is None or is_slot_bookable(day.date, start, now, lead_time))
    ]
    return bookable, len(candidates)


def classify_day(
    day: DaySnapshot,
    today: date,
    config: ServiceConfig,
    variant: Optional[ServiceVariant] = None,
    now: Optional[datetime] = None,
) -> AvailabilityDay:
    """Classify a single day snapshot."""
    if day.date < today:
        return AvailabilityDay(date=day.date, status=DayStatus.PAST)

    blocked = day.seed_status == DayStatus.UNAVAILABLE

    if config.is_capacity_based:
        capacity = Capacity.from_counts(day.booked_count, config.max_animals_per_slot)
        if blocked or capacity.remaining == 0:
            status = DayStatus.UNAVAILABLE
        elif capacity.remaining < capacity.max:
            status = DayStatus.PARTIAL
        else:
            status = DayStatus.AVAILABLE
        return AvailabilityDay(
            date=day.date,
            status=status,
            capacity=capacity,
            time_slots=day.time_slots,
            booked_slots=day.booked_slots,
        )

    if blocked:
        return AvailabilityDay(date=day.date, status=DayStatus.UNAVAILABLE)

    duration = blocking_duration(config, variant)
    bookable, probed = bookable_start_times(day, config, duration, now=now)
    if not bookable:
        status = DayStatus.UNAVAILABLE
    elif len(bookable) < probed:
        status = DayStatus.PARTIAL
    else:
        status = DayStatus.AVAILABLE

    return AvailabilityDay(
        date=day.date,
        status=status,
        time_slots=day.time_slots,
        booked_slots=day.booked_slots,
        bookable_start_times=bookable,
    )


def build_month_calendar(
    days: Iterable[DaySnapshot],
    today: date,
    config: ServiceConfig,
    variant: Optional[ServiceVariant] = None,
    now: Optional[datetime] = None,
) -> list[AvailabilityDay]:
    """Classify every snapshot; ``past`` overrides every other signal."""
    calendar = [classify_day(day, today, config, variant, now) for day in days]
    logger.debug(
        "Built calendar of %d days for %s: %d bookable",
        len(calendar), config.category, sum(1 for d in calendar if d.is_bookable),
    )
    return calendar
