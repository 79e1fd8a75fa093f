"""Booking request, commit payload and commit result models."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pawbook.schemas.service_schema import validate_hhmm
from pawbook.utils import days_between


class SessionSelection(BaseModel):
    """One independently scheduled session of a multi-session formula."""

    date: date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: str) -> str:
        return validate_hhmm(value)


class BookingRequest(BaseModel):
    """Everything the wizard collected before pricing and commit."""

    service_id: str
    variant_id: str
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    include_overnight_stay: bool = False
    selected_option_ids: list[str] = Field(default_factory=list)
    sessions: list[SessionSelection] = Field(default_factory=list)
    collective_slot_ids: list[str] = Field(default_factory=list)
    participant_count: int = Field(default=1, ge=1)
    location: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return validate_hhmm(value)

    @property
    def effective_end_date(self) -> date:
        return self.end_date or self.start_date

    @property
    def total_days(self) -> int:
        return days_between(self.start_date, self.effective_end_date) + 1

    @property
    def is_multi_day(self) -> bool:
        return self.total_days > 1


class BookingCommitPayload(BaseModel):
    """Exact input contract of the external create-booking call."""

    service_id: str
    variant_id: str
    start_date: date
    end_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    selected_option_ids: list[str] = Field(default_factory=list)
    sessions: list[SessionSelection] = Field(default_factory=list)
    collective_slot_ids: list[str] = Field(default_factory=list)
    participant_count: int = Field(default=1, ge=1)
    location: Optional[str] = None
    calculated_amount: int = Field(ge=0)
    overnight_nights: int = Field(default=0, ge=0)
    overnight_amount: int = Field(default=0, ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return validate_hhmm(value)


class BookingError(str, Enum):
    SLOT_NO_LONGER_AVAILABLE = "slot_no_longer_available"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"


class BookingResult(BaseModel):
    """Outcome of a commit, cancel or lookup against the booking store."""

    success: bool
    booking_id: Optional[str] = None
    error: Optional[BookingError] = None
    retryable: bool = False
    message: str = ""
