"""Display-side pricing helpers: commission, formatting and listing prices."""

from typing import Iterable, Optional

from pawbook.schemas.pricing_schema import DisplayPrice, PriceUnit
from pawbook.schemas.service_schema import ServiceVariant
from pawbook.utils import round_half_up

# Order in which a formula's rates are advertised on listings
_DAILY_FIRST = (PriceUnit.DAY, PriceUnit.WEEK, PriceUnit.MONTH, PriceUnit.HOUR)
_HOURLY_FIRST = (PriceUnit.HOUR, PriceUnit.DAY, PriceUnit.WEEK, PriceUnit.MONTH)
_PRICING_FIELDS = {
    PriceUnit.HOUR: "hourly",
    PriceUnit.DAY: "daily",
    PriceUnit.WEEK: "weekly",
    PriceUnit.MONTH: "monthly",
}


def commission_amount(amount: int, commission_rate: float) -> int:
    return round_half_up(amount * commission_rate / 100)


def price_with_commission(amount: int, commission_rate: float) -> int:
    """Client-facing price for a pre-commission amount."""
    return amount + commission_amount(amount, commission_rate)


def calculate_display_price(subtotal: int, commission_rate: float) -> DisplayPrice:
    commission = commission_amount(subtotal, commission_rate)
    return DisplayPrice(
        subtotal=subtotal,
        commission_rate=commission_rate,
        commission=commission,
        total=subtotal + commission,
    )


def format_price(amount: int) -> str:
    """Format minor units as a decimal string.

    Examples:
        >>> format_price(14000)
        '140.00'
        >>> format_price(5)
        '0.05'
    """
    return f"{amount / 100:.2f}"


def format_duration(days: int, hours: float, nights: int, workday_hours: float = 8) -> str:
    """Short human summary such as ``'3 days + 2 nights'``."""
    parts = []
    if days > 0:
        parts.append(f"{days} day{'s' if days > 1 else ''}")
    if hours > 0 and hours != days * workday_hours:
        parts.append(f"{hours:g}h")
    if nights > 0:
        parts.append(f"{nights} night{'s' if nights > 1 else ''}")
    return " + ".join(parts) or "1 day"


def formula_listing_price(
    variant: ServiceVariant, prefer_daily: bool
) -> tuple[int, Optional[PriceUnit]]:
    """
    Price and unit advertised for a formula on a listing card.

    Capacity-style services (boarding, day care) advertise their daily rate
    first; punctual services advertise hourly. Falls back to the flat
    ``variant.price`` and its unit.
    """
    order = _DAILY_FIRST if prefer_daily else _HOURLY_FIRST
    for unit in order:
        value = getattr(variant.pricing, _PRICING_FIELDS[unit])
        if value:
            return value, unit
    if variant.price > 0:
        return variant.price, variant.price_unit
    return 0, None


def service_min_price(
    variants: Iterable[ServiceVariant], prefer_daily: bool
) -> tuple[int, Optional[PriceUnit]]:
    """Cheapest non-zero listing price across a service's formulas."""
    best: tuple[int, Optional[PriceUnit]] = (0, None)
    for variant in variants:
        price, unit = formula_listing_price(variant, prefer_daily)
        if price > 0 and (best[0] == 0 or price < best[0]):
            best = (price, unit)
    return best
