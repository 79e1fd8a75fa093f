from pawbook.pricing.calculator import calculate_price_breakdown, calculate_smart_price
from pawbook.pricing.rates import nightly_rate_for, resolve_rates

__all__ = [
    "calculate_price_breakdown",
    "calculate_smart_price",
    "nightly_rate_for",
    "resolve_rates",
]
