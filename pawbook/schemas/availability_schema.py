"""Calendar snapshot inputs and classified availability outputs."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from pawbook.schemas.service_schema import validate_hhmm
from pawbook.utils import parse_time_to_minutes


class DayStatus(str, Enum):
    AVAILABLE = "available"
    PARTIAL = "partial"
    UNAVAILABLE = "unavailable"
    PAST = "past"


class TimeWindow(BaseModel):
    """Same-day interval between two ``HH:MM`` times."""

    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: str) -> str:
        return validate_hhmm(value)

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)


class Capacity(BaseModel):
    """Shared daily headcount for capacity-based services."""

    current: int = Field(ge=0)
    max: int = Field(ge=0)
    remaining: int = Field(ge=0)

    @classmethod
    def from_counts(cls, current: int, maximum: int) -> "Capacity":
        """Build a capacity record, clamping an overbooked day to zero remaining."""
        current = min(max(0, current), maximum)
        return cls(current=current, max=maximum, remaining=maximum - current)

    @model_validator(mode="after")
    def check_bounds(self) -> "Capacity":
        if self.remaining != self.max - self.current:
            raise ValueError("remaining must equal max - current")
        return self


class DaySnapshot(BaseModel):
    """Pre-aggregated state of one calendar day, as returned by the store query."""

    date: date
    seed_status: Optional[DayStatus] = None
    time_slots: list[TimeWindow] = Field(default_factory=list)
    booked_slots: list[TimeWindow] = Field(default_factory=list)
    booked_count: int = Field(default=0, ge=0)


class AvailabilityDay(BaseModel):
    """Classified calendar day rendered by the booking calendar."""

    date: date
    status: DayStatus
    capacity: Optional[Capacity] = None
    time_slots: list[TimeWindow] = Field(default_factory=list)
    booked_slots: list[TimeWindow] = Field(default_factory=list)
    bookable_start_times: list[str] = Field(default_factory=list)

    @property
    def is_bookable(self) -> bool:
        return self.status in (DayStatus.AVAILABLE, DayStatus.PARTIAL)


class CollectiveSlot(BaseModel):
    """Announcer-published shared session of a collective formula."""

    id: str
    variant_id: str = ""
    date: date
    start_time: str
    end_time: str
    max_animals: int = Field(ge=1)
    booked_animals: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: str) -> str:
        return validate_hhmm(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def available_spots(self) -> int:
        return max(0, self.max_animals - self.booked_animals)
