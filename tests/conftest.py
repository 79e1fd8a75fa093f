"""Shared test fixtures and helpers."""

from datetime import date
from typing import Optional

import pytest

from pawbook.schemas import (
    BookingRequest,
    CollectiveSlot,
    DaySnapshot,
    PricingConfig,
    ServiceConfig,
    ServiceOption,
    ServiceVariant,
    SessionType,
    TimeWindow,
)
from pawbook.tools import availability, booking
from pawbook.utils import dates_between
from pawbook.wizard import BookingWizard

TODAY = date(2026, 11, 2)


@pytest.fixture(autouse=True)
def reset_stores():
    booking.reset()
    availability.reset()
    yield
    booking.reset()
    availability.reset()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def wizard():
    return BookingWizard()


@pytest.fixture
def garde_config():
    """Exclusive pet-sitting service, hourly/daily billing, overnight offered."""
    return ServiceConfig(
        service_id="svc-garde",
        category="garde",
        day_start_time="08:00",
        day_end_time="20:00",
        allow_overnight_stay=True,
        overnight_price=1500,
        options=[ServiceOption(id="extra-walk", name="Extra walk", price=500)],
    )


@pytest.fixture
def garde_variant():
    return ServiceVariant(
        id="var-garde",
        name="Garde a domicile",
        pricing=PricingConfig(hourly=800, daily=6000),
    )


@pytest.fixture
def walk_config():
    """Fixed-duration walks with preparation and travel buffers."""
    return ServiceConfig(
        service_id="svc-walk",
        category="promenade",
        day_start_time="08:00",
        day_end_time="20:00",
        enable_duration_based_blocking=True,
        buffer_before=15,
        buffer_after=15,
    )


@pytest.fixture
def walk_variant():
    return ServiceVariant(id="var-walk", name="Balade 1h", price=2000, duration=60)


@pytest.fixture
def boarding_config():
    """Capacity-based boarding: up to three animals share a day."""
    return ServiceConfig(
        service_id="svc-board",
        category="pension",
        is_capacity_based=True,
        max_animals_per_slot=3,
    )


@pytest.fixture
def boarding_variant():
    return ServiceVariant(id="var-board", name="Pension", pricing=PricingConfig(daily=3000))


@pytest.fixture
def session_config():
    return ServiceConfig(service_id="svc-edu", category="education")


@pytest.fixture
def pack_variant():
    """Three individual sessions, at least one day apart."""
    return ServiceVariant(
        id="var-pack3",
        name="Pack 3 seances",
        price=2000,
        duration=60,
        number_of_sessions=3,
        session_interval=1,
    )


@pytest.fixture
def group_config():
    return ServiceConfig(service_id="svc-group", category="group_walk")


@pytest.fixture
def group_variant():
    return ServiceVariant(
        id="var-group",
        name="Balade collective",
        price=1500,
        duration=90,
        number_of_sessions=2,
        session_type=SessionType.COLLECTIVE,
        max_animals_per_session=4,
    )


@pytest.fixture
def group_slots():
    return {
        "slot-a": CollectiveSlot(
            id="slot-a", variant_id="var-group", date=date(2026, 11, 10),
            start_time="10:00", end_time="11:30", max_animals=4,
        ),
        "slot-b": CollectiveSlot(
            id="slot-b", variant_id="var-group", date=date(2026, 11, 17),
            start_time="10:00", end_time="11:30", max_animals=4,
        ),
    }


def make_snapshot(
    day: date,
    booked: Optional[list[tuple[str, str]]] = None,
    published: Optional[list[tuple[str, str]]] = None,
    booked_count: int = 0,
    seed_status=None,
) -> DaySnapshot:
    """Helper to create a DaySnapshot from (start, end) pairs."""
    return DaySnapshot(
        date=day,
        seed_status=seed_status,
        booked_slots=[TimeWindow(start_time=s, end_time=e) for s, e in booked or []],
        time_slots=[TimeWindow(start_time=s, end_time=e) for s, e in published or []],
        booked_count=booked_count,
    )


def make_calendar(
    start: date, end: date, overrides: Optional[dict[date, DaySnapshot]] = None
) -> dict[date, DaySnapshot]:
    """Empty snapshots for every day from start to end, with some days replaced."""
    calendar = {day: make_snapshot(day) for day in dates_between(start, end)}
    calendar.update(overrides or {})
    return calendar


def make_request(**kwargs) -> BookingRequest:
    """BookingRequest for the garde service with sensible defaults."""
    defaults = dict(service_id="svc-garde", variant_id="var-garde", start_date=date(2026, 11, 10))
    defaults.update(kwargs)
    return BookingRequest(**defaults)
