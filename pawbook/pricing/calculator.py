"""
Smart price calculation for single-day, multi-day and fixed-duration bookings.

Turns a booking request and resolved rates into an itemized ``PriceBreakdown``:
first day, full middle days, last day, nights and options. Partial days are
billed hourly but never above the daily rate, and every leg is rounded to the
minor currency unit on its own so the displayed partial sums add up exactly.

Chosen times are clamped to the announcer's working window before billing;
out-of-window selections are rejected earlier by request validation.

Usage:
    rates = resolve_rates(variant.pricing, workday_hours=8)
    breakdown = calculate_smart_price(request, config, rates, options_total=500)
    breakdown.total_amount
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pawbook.config import settings
from pawbook.pricing.display import calculate_display_price
from pawbook.pricing.rates import nightly_rate_for, resolve_rates
from pawbook.schemas.booking_schema import BookingRequest
from pawbook.schemas.pricing_schema import (
    BillingUnit,
    DisplayPrice,
    PriceBreakdown,
    PriceUnit,
    ResolvedRates,
)
from pawbook.schemas.service_schema import ServiceConfig, ServiceVariant
from pawbook.utils import minutes_to_time, parse_time_to_minutes, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayLeg:
    """Billed amount for one partial or full day."""

    hours: float
    amount: int
    is_full_day: bool = False
    is_half_day: bool = False


def clamp_to_window(value: str, config: ServiceConfig) -> str:
    """Clamp an ``HH:MM`` time into the service's working window."""
    minutes = parse_time_to_minutes(value)
    low = parse_time_to_minutes(config.day_start_time)
    high = parse_time_to_minutes(config.day_end_time)
    return minutes_to_time(min(max(minutes, low), high))


def _window_hours(start_time: str, end_time: str, config: ServiceConfig) -> float:
    start = parse_time_to_minutes(clamp_to_window(start_time, config))
    end = parse_time_to_minutes(clamp_to_window(end_time, config))
    return max(0, end - start) / 60


def price_partial_day(
    hours: float,
    rates: ResolvedRates,
    workday_hours: float,
    half_day_hours: float,
    allowed_units: Optional[list[PriceUnit]] = None,
) -> DayLeg:
    """
    Bill one day leg of ``hours`` hours.

    A leg reaching the workday is a full day. Otherwise it is billed hourly,
    capped at the daily rate, unless hourly billing is not offered, in which
    case it rounds up to a half day or a full day.
    """
    if hours >= workday_hours and rates.daily > 0:
        return DayLeg(hours, rates.daily, is_full_day=True)

    allow_hourly = allowed_units is None or PriceUnit.HOUR in allowed_units
    allow_half_day = allowed_units is not None and PriceUnit.HALF_DAY in allowed_units
    allow_daily = allowed_units is None or PriceUnit.DAY in allowed_units

    if not allow_hourly:
        if allow_half_day and rates.half_daily > 0:
            if hours <= half_day_hours:
                return DayLeg(hours, rates.half_daily, is_half_day=True)
            return DayLeg(hours, rates.daily, is_full_day=True)
        if allow_daily and rates.daily > 0:
            return DayLeg(hours, rates.daily, is_full_day=True)

    if rates.hourly > 0:
        amount = round_half_up(rates.hourly * hours)
        if rates.daily > 0:
            amount = min(amount, rates.daily)
        return DayLeg(hours, amount, is_full_day=rates.daily > 0 and amount >= rates.daily)

    return DayLeg(hours, rates.daily, is_full_day=True)


def _fixed_price(variant: ServiceVariant, nightly_rate: int, options_total: int) -> PriceBreakdown:
    hours = variant.duration / 60
    return PriceBreakdown(
        first_day_amount=variant.price,
        first_day_hours=hours,
        options_amount=options_total,
        total_amount=variant.price + options_total,
        days_count=1,
        hours_count=hours,
        billing_unit=BillingUnit.FIXED,
        nightly_rate=nightly_rate,
    )


def calculate_smart_price(
    request: BookingRequest,
    config: ServiceConfig,
    rates: ResolvedRates,
    options_total: int = 0,
    variant: Optional[ServiceVariant] = None,
    workday_hours: Optional[float] = None,
    half_day_hours: Optional[float] = None,
) -> PriceBreakdown:
    """
    Compute the itemized price of a booking.

    Cases, in order of precedence:
        1. duration-based fixed price (flat ``variant.price``)
        2. single day with a time range (hourly capped at daily)
        3. single day without times (one full day)
        4. multi-day: first leg, ``N-2`` full days, last leg
    Overnight nights are added to multi-day bookings that include them,
    options are always added flat.
    """
    if workday_hours is None:
        workday_hours = settings.pricing.workday_hours
    if half_day_hours is None:
        half_day_hours = settings.pricing.effective_half_day_hours(workday_hours)
    nightly_rate = nightly_rate_for(rates, config)
    allowed_units = config.allowed_price_units

    if config.enable_duration_based_blocking and variant is not None and variant.duration:
        logger.debug("Fixed-duration price for variant %s: %d", variant.id, variant.price)
        return _fixed_price(variant, nightly_rate, options_total)

    rate_fields = dict(
        hourly_rate=rates.hourly,
        half_daily_rate=rates.half_daily,
        daily_rate=rates.daily,
        nightly_rate=nightly_rate,
    )
    total_days = request.total_days

    if total_days <= 1:
        if request.start_time and request.end_time:
            hours = _window_hours(request.start_time, request.end_time, config)
            leg = price_partial_day(hours, rates, workday_hours, half_day_hours, allowed_units)
        else:
            leg = DayLeg(workday_hours, rates.daily, is_full_day=True)

        billing_unit = BillingUnit.HOUR
        if leg.is_full_day:
            billing_unit = BillingUnit.DAY
        elif leg.is_half_day:
            billing_unit = BillingUnit.HALF_DAY

        return PriceBreakdown(
            first_day_amount=leg.amount,
            first_day_hours=leg.hours,
            first_day_is_full_day=leg.is_full_day,
            first_day_is_half_day=leg.is_half_day,
            options_amount=options_total,
            total_amount=leg.amount + options_total,
            days_count=1,
            hours_count=leg.hours,
            billing_unit=billing_unit,
            **rate_fields,
        )

    first_hours = _window_hours(
        request.start_time or config.day_start_time, config.day_end_time, config
    )
    first = price_partial_day(first_hours, rates, workday_hours, half_day_hours, allowed_units)

    last_hours = _window_hours(
        config.day_start_time, request.end_time or config.day_end_time, config
    )
    last = price_partial_day(last_hours, rates, workday_hours, half_day_hours, allowed_units)

    full_days = max(0, total_days - 2)
    full_days_amount = full_days * rates.daily

    nights = total_days - 1 if request.include_overnight_stay else 0
    nights_amount = nights * nightly_rate

    if not any((first.is_full_day, first.is_half_day, last.is_full_day, last.is_half_day)):
        billing_unit = BillingUnit.HOUR
    elif (first.is_half_day or last.is_half_day) and full_days == 0:
        billing_unit = BillingUnit.HALF_DAY
    else:
        billing_unit = BillingUnit.DAY

    total = first.amount + full_days_amount + last.amount + nights_amount + options_total
    logger.debug(
        "Multi-day price over %d days: first=%d full=%dx%d last=%d nights=%d total=%d",
        total_days, first.amount, full_days, rates.daily, last.amount, nights_amount, total,
    )

    return PriceBreakdown(
        first_day_amount=first.amount,
        first_day_hours=first.hours,
        first_day_is_full_day=first.is_full_day,
        first_day_is_half_day=first.is_half_day,
        full_days=full_days,
        full_days_amount=full_days_amount,
        last_day_amount=last.amount,
        last_day_hours=last.hours,
        last_day_is_full_day=last.is_full_day,
        last_day_is_half_day=last.is_half_day,
        nights_amount=nights_amount,
        nights=nights,
        options_amount=options_total,
        total_amount=total,
        days_count=total_days,
        hours_count=first.hours + full_days * workday_hours + last.hours,
        billing_unit=billing_unit,
        **rate_fields,
    )


def calculate_price_breakdown(
    request: BookingRequest,
    config: ServiceConfig,
    variant: ServiceVariant,
    commission_rate: Optional[float] = None,
    workday_hours: Optional[float] = None,
) -> Optional[tuple[PriceBreakdown, DisplayPrice]]:
    """
    Resolve rates and options for a variant, then price the request.

    Returns ``None`` when the variant has no usable rate, so callers refuse
    to proceed instead of charging zero.
    """
    if workday_hours is None:
        workday_hours = settings.pricing.workday_hours
    if commission_rate is None:
        commission_rate = settings.pricing.commission_rate

    rates = resolve_rates(variant.pricing, workday_hours)
    is_fixed = config.enable_duration_based_blocking and bool(variant.duration)
    if is_fixed and not variant.price:
        logger.warning("Fixed-duration variant %s has no price; cannot price", variant.id)
        return None
    if not is_fixed and not rates.is_priceable:
        logger.warning("Variant %s has no hourly or daily rate; cannot price", variant.id)
        return None

    options_total = config.options_total(request.selected_option_ids)
    breakdown = calculate_smart_price(
        request, config, rates, options_total, variant=variant, workday_hours=workday_hours,
    )
    return breakdown, calculate_display_price(breakdown.total_amount, commission_rate)
