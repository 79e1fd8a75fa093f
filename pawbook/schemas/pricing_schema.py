"""Pricing configuration, resolved rates and price breakdown models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PriceUnit(str, Enum):
    HOUR = "hour"
    HALF_DAY = "half_day"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    FLAT = "flat"


class BillingUnit(str, Enum):
    """Unit a breakdown was predominantly billed in, for display."""

    HOUR = "hour"
    HALF_DAY = "half_day"
    DAY = "day"
    FIXED = "fixed"


class PricingConfig(BaseModel):
    """Announcer-entered rates in minor currency units; any may be missing."""

    hourly: Optional[int] = Field(default=None, ge=0)
    half_daily: Optional[int] = Field(default=None, ge=0)
    daily: Optional[int] = Field(default=None, ge=0)
    weekly: Optional[int] = Field(default=None, ge=0)
    monthly: Optional[int] = Field(default=None, ge=0)
    nightly: Optional[int] = Field(default=None, ge=0)


class ResolvedRates(BaseModel):
    """Fully populated rate record. Zero means the rate is not available."""

    hourly: int = 0
    half_daily: int = 0
    daily: int = 0
    nightly: int = 0

    @property
    def is_priceable(self) -> bool:
        """A zero hourly and daily rate means pricing is unavailable, not free."""
        return self.hourly > 0 or self.daily > 0


class PriceBreakdown(BaseModel):
    """Itemized price shown on the recap screen and sent to the commit call."""

    first_day_amount: int = 0
    first_day_hours: float = 0
    first_day_is_full_day: bool = False
    first_day_is_half_day: bool = False
    full_days: int = 0
    full_days_amount: int = 0
    last_day_amount: int = 0
    last_day_hours: float = 0
    last_day_is_full_day: bool = False
    last_day_is_half_day: bool = False
    nights_amount: int = 0
    nights: int = 0
    options_amount: int = 0
    total_amount: int = 0
    days_count: int = 1
    hours_count: float = 0
    billing_unit: BillingUnit = BillingUnit.HOUR
    hourly_rate: int = 0
    half_daily_rate: int = 0
    daily_rate: int = 0
    nightly_rate: int = 0

    @property
    def base_amount(self) -> int:
        """Day legs only, without nights and options."""
        return self.first_day_amount + self.full_days_amount + self.last_day_amount


class MultiUnitPrice(BaseModel):
    """Price of a multi-session or collective formula."""

    unit_price: int
    occurrences: int
    participants: int = 1
    options_amount: int = 0
    total_amount: int


class DisplayPrice(BaseModel):
    """Commission-inclusive figures for display; the breakdown stays pre-commission."""

    subtotal: int
    commission_rate: float
    commission: int
    total: int
