"""
Booking validation and quoting.

Runs every live check the wizard needs (dates, working hours, slot
conflicts, capacity, sessions, collective spots) and prices the request.
Problems come back as ``ValidationIssue`` values, never exceptions: the
client is expected to pick again.

The booking commit collaborator calls ``validate_booking_request`` again
with an authoritative calendar, so optimistic and authoritative checks use
the same rules.

Usage:
    quote = quote_booking(request, config, variant, calendar, today=date.today())
    if quote.can_proceed:
        submit(quote.payload)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Optional, Union

from pawbook.config import settings
from pawbook.pricing.calculator import calculate_price_breakdown
from pawbook.pricing.display import calculate_display_price
from pawbook.schemas.availability_schema import (
    AvailabilityDay,
    CollectiveSlot,
    DaySnapshot,
    DayStatus,
)
from pawbook.schemas.booking_schema import BookingCommitPayload, BookingRequest
from pawbook.schemas.pricing_schema import DisplayPrice, MultiUnitPrice, PriceBreakdown
from pawbook.schemas.service_schema import ServiceConfig, ServiceVariant
from pawbook.scheduling.calendar import classify_day
from pawbook.scheduling.conflicts import is_slot_bookable, is_time_slot_available
from pawbook.scheduling.multi_unit import (
    MultiUnitSelection,
    calculate_multi_unit_price,
    check_collective_selection,
    check_individual_sessions,
    occupied_session,
)
from pawbook.utils import (
    add_minutes_to_time,
    dates_between,
    parse_time_to_minutes,
)

logger = logging.getLogger(__name__)

CalendarEntry = Union[AvailabilityDay, DaySnapshot]


class IssueCode(str, Enum):
    """Why a booking request cannot proceed."""
    INVALID_DATE_RANGE = "invalid_date_range"
    PAST_DATE = "past_date"
    INVALID_TIME_RANGE = "invalid_time_range"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    MISSING_START_TIME = "missing_start_time"
    MISSING_DURATION = "missing_duration"
    DAY_UNAVAILABLE = "day_unavailable"
    SLOT_CONFLICT = "slot_conflict"
    CAPACITY_EXHAUSTED = "capacity_exhausted"
    OVERNIGHT_NOT_OFFERED = "overnight_not_offered"
    SESSIONS_INVALID = "sessions_invalid"
    COLLECTIVE_SLOTS_INVALID = "collective_slots_invalid"
    PRICING_UNAVAILABLE = "pricing_unavailable"


# Issues that mean someone else took the time, as opposed to a bad request
AVAILABILITY_ISSUES = frozenset({
    IssueCode.DAY_UNAVAILABLE,
    IssueCode.SLOT_CONFLICT,
    IssueCode.CAPACITY_EXHAUSTED,
    IssueCode.SESSIONS_INVALID,
    IssueCode.COLLECTIVE_SLOTS_INVALID,
})


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    message: str


@dataclass
class BookingQuote:
    """Everything the recap screen shows and the commit call receives."""

    issues: list[ValidationIssue] = field(default_factory=list)
    breakdown: Optional[PriceBreakdown] = None
    multi_unit_price: Optional[MultiUnitPrice] = None
    display_price: Optional[DisplayPrice] = None
    payload: Optional[BookingCommitPayload] = None

    @property
    def can_proceed(self) -> bool:
        return not self.issues and self.payload is not None

    @property
    def amount(self) -> int:
        if self.breakdown is not None:
            return self.breakdown.total_amount
        if self.multi_unit_price is not None:
            return self.multi_unit_price.total_amount
        return 0


def occupied_interval(
    request: BookingRequest, config: ServiceConfig, variant: ServiceVariant
) -> tuple[Optional[str], Optional[str]]:
    """Start/end actually blocked on the calendar for a single booking.

    Fixed-duration formulas occupy exactly ``variant.duration`` minutes from
    the chosen start, whatever end time the client sent.
    """
    if config.enable_duration_based_blocking and variant.duration and request.start_time:
        return request.start_time, add_minutes_to_time(request.start_time, variant.duration)
    return request.start_time, request.end_time


def _resolve_day(
    calendar: Mapping[date, CalendarEntry],
    day: date,
    today: date,
    config: ServiceConfig,
    variant: ServiceVariant,
    now: Optional[datetime],
) -> Optional[AvailabilityDay]:
    entry = calendar.get(day)
    if entry is None or isinstance(entry, AvailabilityDay):
        return entry
    return classify_day(entry, today, config, variant, now)


def _in_window(value: str, config: ServiceConfig) -> bool:
    minutes = parse_time_to_minutes(value)
    return (
        parse_time_to_minutes(config.day_start_time)
        <= minutes
        <= parse_time_to_minutes(config.day_end_time)
    )


def _check_dates_and_times(
    request: BookingRequest, config: ServiceConfig, variant: ServiceVariant, today: date
) -> list[ValidationIssue]:
    issues = []
    if request.end_date is not None and request.end_date < request.start_date:
        issues.append(ValidationIssue(
            IssueCode.INVALID_DATE_RANGE, "end date is before start date"
        ))
    if request.start_date < today:
        issues.append(ValidationIssue(
            IssueCode.PAST_DATE, f"{request.start_date} is in the past"
        ))

    is_fixed = config.enable_duration_based_blocking
    if is_fixed and not variant.duration:
        issues.append(ValidationIssue(
            IssueCode.MISSING_DURATION, f"formula {variant.id} has no duration"
        ))
    if is_fixed and variant.duration and not request.start_time:
        issues.append(ValidationIssue(
            IssueCode.MISSING_START_TIME, "a start time is required for this formula"
        ))

    start, end = occupied_interval(request, config, variant)
    for value in (start, end):
        if value is not None and not _in_window(value, config):
            issues.append(ValidationIssue(
                IssueCode.OUTSIDE_WORKING_HOURS,
                f"{value} is outside working hours "
                f"{config.day_start_time}-{config.day_end_time}",
            ))
    if (
        not request.is_multi_day
        and start is not None
        and end is not None
        and parse_time_to_minutes(end) <= parse_time_to_minutes(start)
    ):
        issues.append(ValidationIssue(
            IssueCode.INVALID_TIME_RANGE, f"end time {end} is not after start time {start}"
        ))

    if request.include_overnight_stay and not (config.allow_overnight_stay and request.is_multi_day):
        issues.append(ValidationIssue(
            IssueCode.OVERNIGHT_NOT_OFFERED, "overnight stay is not available for this booking"
        ))
    return issues


def _check_days(
    request: BookingRequest,
    config: ServiceConfig,
    variant: ServiceVariant,
    calendar: Mapping[date, CalendarEntry],
    today: date,
    now: Optional[datetime],
) -> list[ValidationIssue]:
    issues = []
    start, end = occupied_interval(request, config, variant)
    buffer_before, buffer_after = config.blocking_buffers
    days = dates_between(request.start_date, request.effective_end_date)
    lead_time = settings.schedule.min_booking_lead_time_hours
    last = len(days) - 1

    for index, day in enumerate(days):
        entry = _resolve_day(calendar, day, today, config, variant, now)
        if entry is None or entry.status in (DayStatus.PAST, DayStatus.UNAVAILABLE):
            if entry is not None and entry.capacity is not None and entry.capacity.remaining == 0:
                issues.append(ValidationIssue(
                    IssueCode.CAPACITY_EXHAUSTED, f"no places left on {day}"
                ))
            else:
                issues.append(ValidationIssue(IssueCode.DAY_UNAVAILABLE, f"{day} is not available"))
            continue

        if config.is_capacity_based:
            if entry.capacity is not None and entry.capacity.remaining < request.participant_count:
                issues.append(ValidationIssue(
                    IssueCode.CAPACITY_EXHAUSTED,
                    f"only {entry.capacity.remaining} place(s) left on {day}",
                ))
            continue

        leg_start, leg_end = config.day_start_time, config.day_end_time
        if index == 0 and start:
            leg_start = start
        if index == last and end:
            leg_end = end

        duration = parse_time_to_minutes(leg_end) - parse_time_to_minutes(leg_start)
        if duration <= 0:
            continue
        if now is not None and index == 0 and not is_slot_bookable(day, leg_start, now, lead_time):
            issues.append(ValidationIssue(
                IssueCode.SLOT_CONFLICT, f"{day} {leg_start} is too soon to book"
            ))
            continue
        if not is_time_slot_available(leg_start, duration, entry, buffer_before, buffer_after):
            issues.append(ValidationIssue(
                IssueCode.SLOT_CONFLICT, f"{day} {leg_start}-{leg_end} is already booked"
            ))
    return issues


def validate_booking_request(
    request: BookingRequest,
    config: ServiceConfig,
    variant: ServiceVariant,
    calendar: Mapping[date, CalendarEntry],
    today: date,
    now: Optional[datetime] = None,
    collective_slots: Optional[Mapping[str, CollectiveSlot]] = None,
) -> list[ValidationIssue]:
    """
    Check a request against the calendar.

    Args:
        calendar: Classified days or raw snapshots, keyed by date. Days the
            request touches but the calendar lacks count as unavailable.
        today: Reference date; earlier days are past.
        now: Optional reference time enforcing the same-day lead time.
        collective_slots: Published slots by id, for collective formulas.

    Returns:
        Every issue found; an empty list means the request can proceed.
    """
    if variant.is_collective:
        if len(request.collective_slot_ids) > variant.number_of_sessions:
            return [ValidationIssue(
                IssueCode.COLLECTIVE_SLOTS_INVALID,
                f"{len(request.collective_slot_ids)} slots selected, "
                f"the formula includes {variant.number_of_sessions}",
            )]
        selection = MultiUnitSelection(required=variant.number_of_sessions)
        for slot_id in request.collective_slot_ids:
            selection = selection.add(slot_id)
        if len(selection.items) != len(request.collective_slot_ids):
            return [ValidationIssue(
                IssueCode.COLLECTIVE_SLOTS_INVALID, "each slot can be selected only once"
            )]
        problems = check_collective_selection(
            selection, collective_slots or {}, variant, request.participant_count, today, now
        )
        return [ValidationIssue(IssueCode.COLLECTIVE_SLOTS_INVALID, p) for p in problems]

    if variant.is_multi_session:
        sessions = [occupied_session(s, config, variant) for s in request.sessions]
        selection = MultiUnitSelection(required=variant.number_of_sessions)
        for session in sessions:
            selection = selection.add(session)
        issues = []
        for session in sessions:
            for value in (session.start_time, session.end_time):
                if not _in_window(value, config):
                    issues.append(ValidationIssue(
                        IssueCode.OUTSIDE_WORKING_HOURS,
                        f"session {session.date} {value} is outside working hours",
                    ))
        if len(sessions) > variant.number_of_sessions:
            issues.append(ValidationIssue(
                IssueCode.SESSIONS_INVALID,
                f"{len(sessions)} sessions selected, "
                f"the formula includes {variant.number_of_sessions}",
            ))
        elif len(selection.items) != len(sessions):
            issues.append(ValidationIssue(
                IssueCode.SESSIONS_INVALID, "the same session was selected twice"
            ))
        resolved = {}
        for session in sessions:
            entry = _resolve_day(calendar, session.date, today, config, variant, now)
            if entry is not None:
                resolved[session.date] = entry
        problems = check_individual_sessions(selection, variant, resolved, config, today, now)
        issues.extend(ValidationIssue(IssueCode.SESSIONS_INVALID, p) for p in problems)
        return issues

    issues = _check_dates_and_times(request, config, variant, today)
    if any(i.code in (IssueCode.INVALID_DATE_RANGE, IssueCode.PAST_DATE) for i in issues):
        return issues
    issues.extend(_check_days(request, config, variant, calendar, today, now))
    return issues


def build_commit_payload(
    request: BookingRequest,
    config: ServiceConfig,
    variant: ServiceVariant,
    amount: int,
    overnight_nights: int = 0,
    overnight_amount: int = 0,
) -> BookingCommitPayload:
    """Raw selection plus the computed figures, in the create-booking contract."""
    start, end = occupied_interval(request, config, variant)
    return BookingCommitPayload(
        service_id=request.service_id,
        variant_id=request.variant_id,
        start_date=request.start_date,
        end_date=request.effective_end_date,
        start_time=start,
        end_time=end,
        selected_option_ids=list(request.selected_option_ids),
        sessions=[occupied_session(s, config, variant) for s in request.sessions],
        collective_slot_ids=list(request.collective_slot_ids),
        participant_count=request.participant_count,
        location=request.location,
        calculated_amount=amount,
        overnight_nights=overnight_nights,
        overnight_amount=overnight_amount,
    )


def quote_booking(
    request: BookingRequest,
    config: ServiceConfig,
    variant: ServiceVariant,
    calendar: Mapping[date, CalendarEntry],
    today: date,
    now: Optional[datetime] = None,
    collective_slots: Optional[Mapping[str, CollectiveSlot]] = None,
    commission_rate: Optional[float] = None,
    workday_hours: Optional[float] = None,
) -> BookingQuote:
    """Validate and price a request in one pass."""
    if commission_rate is None:
        commission_rate = settings.pricing.commission_rate

    quote = BookingQuote(issues=validate_booking_request(
        request, config, variant, calendar, today, now, collective_slots
    ))
    options_total = config.options_total(request.selected_option_ids)

    if variant.is_collective or variant.is_multi_session:
        if not variant.price:
            quote.issues.append(ValidationIssue(
                IssueCode.PRICING_UNAVAILABLE, f"formula {variant.id} has no price"
            ))
            return quote
        price = calculate_multi_unit_price(variant, request.participant_count, options_total)
        quote.multi_unit_price = price
        quote.display_price = calculate_display_price(price.total_amount, commission_rate)
        quote.payload = build_commit_payload(request, config, variant, price.total_amount)
    else:
        priced = calculate_price_breakdown(
            request, config, variant, commission_rate=commission_rate, workday_hours=workday_hours,
        )
        if priced is None:
            quote.issues.append(ValidationIssue(
                IssueCode.PRICING_UNAVAILABLE, f"formula {variant.id} cannot be priced"
            ))
            return quote
        quote.breakdown, quote.display_price = priced
        quote.payload = build_commit_payload(
            request,
            config,
            variant,
            quote.breakdown.total_amount,
            overnight_nights=quote.breakdown.nights,
            overnight_amount=quote.breakdown.nights_amount,
        )

    logger.debug(
        "Quote for %s/%s: amount=%d issues=%d",
        request.service_id, request.variant_id, quote.amount, len(quote.issues),
    )
    return quote
