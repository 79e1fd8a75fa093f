"""Tests for rate resolution."""

import pytest

from pawbook.pricing.rates import nightly_rate_for, resolve_rates
from pawbook.schemas import PricingConfig, ServiceConfig


class TestHourlyFromDaily:
    def test_hourly_derived_from_daily(self):
        rates = resolve_rates(PricingConfig(daily=6000), workday_hours=8)
        assert rates.hourly == 750
        assert rates.daily == 6000

    @pytest.mark.parametrize("daily,workday,expected", [
        (1000, 3, 333),
        (1000, 6, 167),
        (2500, 8, 313),
        (4500, 7.5, 600),
    ])
    def test_hourly_is_rounded(self, daily, workday, expected):
        assert resolve_rates(PricingConfig(daily=daily), workday).hourly == expected


class TestDailyFromHourly:
    @pytest.mark.parametrize("hourly,workday", [(800, 8), (1250, 7), (999, 10)])
    def test_daily_is_hourly_times_workday(self, hourly, workday):
        assert resolve_rates(PricingConfig(hourly=hourly), workday).daily == hourly * workday

    def test_configured_daily_wins(self):
        rates = resolve_rates(PricingConfig(hourly=800, daily=6000), workday_hours=8)
        assert rates.daily == 6000
        assert rates.hourly == 800


class TestHalfDay:
    def test_configured_half_day_wins(self):
        rates = resolve_rates(PricingConfig(daily=6000, half_daily=3500), workday_hours=8)
        assert rates.half_daily == 3500

    def test_half_of_configured_daily(self):
        rates = resolve_rates(PricingConfig(hourly=800, daily=6000), workday_hours=8)
        assert rates.half_daily == 3000

    def test_hourly_times_half_day_hours(self):
        rates = resolve_rates(PricingConfig(hourly=800), workday_hours=8, half_day_hours=5)
        assert rates.half_daily == 4000


class TestUnpriceable:
    def test_no_rates_resolves_to_zero(self):
        rates = resolve_rates(PricingConfig(), workday_hours=8)
        assert rates.hourly == 0
        assert rates.daily == 0
        assert not rates.is_priceable

    def test_weekly_alone_is_not_priceable(self):
        assert not resolve_rates(PricingConfig(weekly=30000), workday_hours=8).is_priceable


class TestNightly:
    def test_nightly_never_derived(self):
        assert resolve_rates(PricingConfig(daily=6000), workday_hours=8).nightly == 0

    def test_configured_nightly(self):
        assert resolve_rates(PricingConfig(daily=6000, nightly=1200), 8).nightly == 1200

    def test_falls_back_to_service_overnight_price(self):
        config = ServiceConfig(category="garde", overnight_price=1500)
        rates = resolve_rates(PricingConfig(daily=6000), workday_hours=8)
        assert nightly_rate_for(rates, config) == 1500

    def test_formula_nightly_beats_service_price(self):
        config = ServiceConfig(category="garde", overnight_price=1500)
        rates = resolve_rates(PricingConfig(daily=6000, nightly=1000), workday_hours=8)
        assert nightly_rate_for(rates, config) == 1000
