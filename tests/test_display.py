"""Tests for commission and display helpers."""

from pawbook.pricing.display import (
    calculate_display_price,
    commission_amount,
    format_duration,
    format_price,
    formula_listing_price,
    price_with_commission,
    service_min_price,
)
from pawbook.schemas import PriceUnit, PricingConfig, ServiceVariant


class TestCommission:
    def test_commission_amount(self):
        assert commission_amount(14000, 15) == 2100

    def test_commission_rounds_half_up(self):
        assert commission_amount(10, 15) == 2

    def test_price_with_commission(self):
        assert price_with_commission(1000, 15) == 1150

    def test_display_price(self):
        display = calculate_display_price(14000, 15)
        assert display.subtotal == 14000
        assert display.commission == 2100
        assert display.total == 16100

    def test_zero_commission(self):
        assert calculate_display_price(5000, 0).total == 5000


class TestFormatting:
    def test_format_price(self):
        assert format_price(14000) == "140.00"

    def test_format_cents(self):
        assert format_price(5) == "0.05"

    def test_format_duration_days_and_nights(self):
        assert format_duration(3, 24, 2) == "3 days + 2 nights"

    def test_format_duration_partial_hours(self):
        assert format_duration(1, 3, 0) == "1 day + 3h"

    def test_format_duration_single_night(self):
        assert format_duration(2, 16, 1) == "2 days + 1 night"


class TestListingPrice:
    def test_daily_first_for_capacity_services(self):
        variant = ServiceVariant(id="v", name="V", pricing=PricingConfig(hourly=800, daily=6000))
        assert formula_listing_price(variant, prefer_daily=True) == (6000, PriceUnit.DAY)

    def test_hourly_first_for_punctual_services(self):
        variant = ServiceVariant(id="v", name="V", pricing=PricingConfig(hourly=800, daily=6000))
        assert formula_listing_price(variant, prefer_daily=False) == (800, PriceUnit.HOUR)

    def test_falls_back_to_flat_price(self):
        variant = ServiceVariant(id="v", name="V", price=2000, duration=60, price_unit=PriceUnit.FLAT)
        assert formula_listing_price(variant, prefer_daily=False) == (2000, PriceUnit.FLAT)

    def test_no_price_at_all(self):
        assert formula_listing_price(ServiceVariant(id="v", name="V"), True) == (0, None)

    def test_service_min_price_skips_unpriced(self):
        variants = [
            ServiceVariant(id="a", name="A"),
            ServiceVariant(id="b", name="B", pricing=PricingConfig(daily=5000)),
            ServiceVariant(id="c", name="C", pricing=PricingConfig(daily=4500)),
        ]
        assert service_min_price(variants, prefer_daily=True) == (4500, PriceUnit.DAY)
