"""Service, variant (formula) and option configuration models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pawbook.config import settings
from pawbook.schemas.pricing_schema import PriceUnit, PricingConfig
from pawbook.utils import parse_time_to_minutes


def validate_hhmm(value: str) -> str:
    """Reject anything that is not a valid ``HH:MM`` time (``24:00`` allowed)."""
    value = value.strip()
    parts = value.split(":")
    if len(parts) != 2 or not all(len(p) == 2 and p.isdigit() for p in parts):
        raise ValueError(f"time must be in HH:MM format, got {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValueError(f"time out of range: {value!r}")
    return value


class SessionType(str, Enum):
    INDIVIDUAL = "individual"
    COLLECTIVE = "collective"


class ServiceOption(BaseModel):
    """Paid add-on, priced flat per booking."""
    id: str
    name: str
    price: int = Field(default=0, ge=0)


class ServiceVariant(BaseModel):
    """A bookable formula of a service."""

    id: str
    name: str
    price: int = Field(default=0, ge=0)
    duration: Optional[int] = Field(default=None, gt=0)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    price_unit: PriceUnit = PriceUnit.HOUR
    number_of_sessions: int = Field(default=1, ge=1)
    session_interval: int = Field(default=0, ge=0)
    session_type: Optional[SessionType] = None
    max_animals_per_session: Optional[int] = Field(default=None, ge=1)
    included_features: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_session_rules(self) -> "ServiceVariant":
        if self.number_of_sessions > 1 and self.session_type is None:
            self.session_type = SessionType.INDIVIDUAL
        if self.session_type == SessionType.COLLECTIVE and self.max_animals_per_session is None:
            raise ValueError("collective formulas require max_animals_per_session")
        return self

    @property
    def is_collective(self) -> bool:
        return self.session_type == SessionType.COLLECTIVE

    @property
    def is_multi_session(self) -> bool:
        return self.session_type == SessionType.INDIVIDUAL and self.number_of_sessions > 1


class ServiceConfig(BaseModel):
    """Announcer-level settings for one service."""

    service_id: str = ""
    category: str
    day_start_time: str = settings.schedule.day_start_time
    day_end_time: str = settings.schedule.day_end_time
    allow_overnight_stay: bool = False
    overnight_price: int = Field(default=0, ge=0)
    enable_duration_based_blocking: bool = False
    is_capacity_based: bool = False
    max_animals_per_slot: int = Field(default=1, ge=1)
    buffer_before: int = Field(default=settings.schedule.buffer_before, ge=0)
    buffer_after: int = Field(default=settings.schedule.buffer_after, ge=0)
    allowed_price_units: Optional[list[PriceUnit]] = None
    options: list[ServiceOption] = Field(default_factory=list)

    @field_validator("day_start_time", "day_end_time")
    @classmethod
    def check_times(cls, value: str) -> str:
        return validate_hhmm(value)

    @model_validator(mode="after")
    def check_window(self) -> "ServiceConfig":
        if parse_time_to_minutes(self.day_start_time) >= parse_time_to_minutes(self.day_end_time):
            raise ValueError(
                f"day_start_time {self.day_start_time} must be before day_end_time {self.day_end_time}"
            )
        return self

    @property
    def blocking_buffers(self) -> tuple[int, int]:
        """Buffers apply only when the formula blocks a fixed duration."""
        if self.enable_duration_based_blocking:
            return self.buffer_before, self.buffer_after
        return 0, 0

    def options_total(self, option_ids: list[str]) -> int:
        """Sum of the selected options' prices; unknown ids are ignored."""
        prices = {opt.id: opt.price for opt in self.options}
        return sum(prices.get(opt_id, 0) for opt_id in option_ids)
