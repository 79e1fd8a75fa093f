from pawbook.schemas.availability_schema import (
    AvailabilityDay,
    Capacity,
    CollectiveSlot,
    DaySnapshot,
    DayStatus,
    TimeWindow,
)
from pawbook.schemas.booking_schema import (
    BookingCommitPayload,
    BookingError,
    BookingRequest,
    BookingResult,
    SessionSelection,
)
from pawbook.schemas.pricing_schema import (
    BillingUnit,
    DisplayPrice,
    MultiUnitPrice,
    PriceBreakdown,
    PriceUnit,
    PricingConfig,
    ResolvedRates,
)
from pawbook.schemas.service_schema import (
    ServiceConfig,
    ServiceOption,
    ServiceVariant,
    SessionType,
)

__all__ = [
    "AvailabilityDay",
    "Capacity",
    "CollectiveSlot",
    "DaySnapshot",
    "DayStatus",
    "TimeWindow",
    "BookingCommitPayload",
    "BookingError",
    "BookingRequest",
    "BookingResult",
    "SessionSelection",
    "BillingUnit",
    "DisplayPrice",
    "MultiUnitPrice",
    "PriceBreakdown",
    "PriceUnit",
    "PricingConfig",
    "ResolvedRates",
    "ServiceConfig",
    "ServiceOption",
    "ServiceVariant",
    "SessionType",
]
