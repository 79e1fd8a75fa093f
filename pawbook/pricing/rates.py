"""
Rate resolution: one explicit place where missing rates are inferred.

Every pricing path (listing display, smart price, multi-session totals)
consumes the ``ResolvedRates`` produced here instead of chaining its own
fallbacks over optional pricing fields.
"""

import logging
from typing import Optional

from pawbook.schemas.pricing_schema import PricingConfig, ResolvedRates
from pawbook.schemas.service_schema import ServiceConfig
from pawbook.utils import round_half_up

logger = logging.getLogger(__name__)


def resolve_rates(
    pricing: PricingConfig,
    workday_hours: float,
    half_day_hours: Optional[float] = None,
) -> ResolvedRates:
    """
    Derive a complete hourly/half-day/daily/nightly rate record.

    - hourly missing, daily present: ``hourly = round(daily / workday_hours)``
    - daily missing, hourly present: ``daily = hourly * workday_hours``
    - nightly is never derived (0 when not configured)

    Unresolvable rates come back as 0; check ``ResolvedRates.is_priceable``
    before charging anything.
    """
    if half_day_hours is None:
        half_day_hours = workday_hours / 2

    hourly = pricing.hourly or 0
    daily = pricing.daily or 0

    if not hourly and daily and workday_hours > 0:
        hourly = round_half_up(daily / workday_hours)
    if not daily and hourly:
        daily = round_half_up(hourly * workday_hours)

    if pricing.half_daily:
        half_daily = pricing.half_daily
    elif pricing.daily:
        half_daily = round_half_up(pricing.daily / 2)
    else:
        half_daily = round_half_up(hourly * half_day_hours)

    rates = ResolvedRates(
        hourly=hourly,
        half_daily=half_daily,
        daily=daily,
        nightly=pricing.nightly or 0,
    )
    if not rates.is_priceable:
        logger.debug("No hourly or daily rate configured; pricing unavailable")
    return rates


def nightly_rate_for(rates: ResolvedRates, config: ServiceConfig) -> int:
    """Formula nightly rate, falling back to the service-level overnight price."""
    return rates.nightly or config.overnight_price
