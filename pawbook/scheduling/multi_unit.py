"""
Scheduling rules for formulas made of several occurrences.

Two flavours:
    - individual multi-session: the client schedules each session on its
      own, at least ``session_interval`` days apart, and every session must
      pass the slot conflict checker for its day;
    - collective: the client picks announcer-published shared slots, each
      with a limited number of spots.

Selections are modelled as ``MultiUnitSelection``, an immutable
fixed-capacity set. ``add``/``remove`` return a new selection and the
formula is bookable only once ``is_complete`` is true.

Usage:
    selection = MultiUnitSelection.for_variant(variant)
    selection = selection.add(session)
    selected, required = selection.progress
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Generic, Mapping, Optional, Sequence, TypeVar, Union

from pawbook.config import settings
from pawbook.schemas.availability_schema import (
    AvailabilityDay,
    CollectiveSlot,
    DaySnapshot,
    DayStatus,
)
from pawbook.schemas.booking_schema import SessionSelection
from pawbook.schemas.pricing_schema import MultiUnitPrice
from pawbook.schemas.service_schema import ServiceConfig, ServiceVariant
from pawbook.scheduling.conflicts import (
    intervals_overlap,
    is_slot_bookable,
    is_time_slot_available,
)
from pawbook.utils import add_minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)

T = TypeVar("T")

CalendarLike = Mapping[date, Union[AvailabilityDay, DaySnapshot]]


@dataclass(frozen=True)
class MultiUnitSelection(Generic[T]):
    """Fixed-capacity set of selected sessions or slot ids."""

    required: int
    items: tuple[T, ...] = ()

    @classmethod
    def for_variant(cls, variant: ServiceVariant) -> "MultiUnitSelection":
        return cls(required=variant.number_of_sessions)

    def can_add(self, item: T) -> bool:
        return len(self.items) < self.required and item not in self.items

    def add(self, item: T) -> "MultiUnitSelection[T]":
        """Return a selection including ``item``; unchanged if full or duplicate."""
        if not self.can_add(item):
            return self
        return replace(self, items=self.items + (item,))

    def remove(self, item: T) -> "MultiUnitSelection[T]":
        return replace(self, items=tuple(i for i in self.items if i != item))

    @property
    def progress(self) -> tuple[int, int]:
        """(selected, required) for the step indicator."""
        return len(self.items), self.required

    @property
    def remaining(self) -> int:
        return self.required - len(self.items)

    def is_complete(self) -> bool:
        return len(self.items) == self.required


# ------------------------------------------------------------------
# Individual multi-session
# ------------------------------------------------------------------

def _session_bounds(session: SessionSelection) -> tuple[int, int]:
    return parse_time_to_minutes(session.start_time), parse_time_to_minutes(session.end_time)


def occupied_session(
    session: SessionSelection, config: ServiceConfig, variant: ServiceVariant
) -> SessionSelection:
    """Session as it sits on the calendar.

    Fixed-duration formulas occupy exactly ``variant.duration`` minutes from
    the chosen start, whatever end time the client sent.
    """
    if config.enable_duration_based_blocking and variant.duration:
        return session.model_copy(
            update={"end_time": add_minutes_to_time(session.start_time, variant.duration)}
        )
    return session


def validate_session_spacing(sessions: Sequence[SessionSelection], session_interval: int) -> bool:
    """Consecutive sessions, sorted by date, must be ``session_interval`` days apart.

    With a zero interval several sessions may share a day as long as they
    do not overlap each other.
    """
    ordered = sorted(sessions, key=lambda s: (s.date, s.start_time))
    for previous, current in zip(ordered, ordered[1:]):
        gap = (current.date - previous.date).days
        if gap < session_interval:
            return False
        if gap == 0 and intervals_overlap(*_session_bounds(previous), *_session_bounds(current)):
            return False
    return True


def is_session_available(
    session: SessionSelection,
    calendar: CalendarLike,
    config: ServiceConfig,
    today: date,
    now: Optional[datetime] = None,
    variant: Optional[ServiceVariant] = None,
) -> bool:
    """Check one session against the calendar entry for its date.

    With ``variant`` given, a fixed-duration session is checked over its
    full duration rather than the end time it carries.
    """
    if variant is not None:
        session = occupied_session(session, config, variant)
    day = calendar.get(session.date)
    if day is None or session.date < today:
        return False
    if isinstance(day, AvailabilityDay) and not day.is_bookable:
        return False
    if isinstance(day, DaySnapshot) and day.seed_status == DayStatus.UNAVAILABLE:
        return False

    start, end = _session_bounds(session)
    if end <= start:
        return False
    if now is not None and not is_slot_bookable(
        session.date, session.start_time, now, settings.schedule.min_booking_lead_time_hours
    ):
        return False

    buffer_before, buffer_after = config.blocking_buffers
    return is_time_slot_available(session.start_time, end - start, day, buffer_before, buffer_after)


def check_individual_sessions(
    selection: MultiUnitSelection[SessionSelection],
    variant: ServiceVariant,
    calendar: CalendarLike,
    config: ServiceConfig,
    today: date,
    now: Optional[datetime] = None,
) -> list[str]:
    """Return human-readable problems with an individual session selection."""
    problems = []
    selected, required = selection.progress
    if selected != required:
        problems.append(f"{selected}/{required} sessions selected")
    sessions = [occupied_session(s, config, variant) for s in selection.items]
    if not validate_session_spacing(sessions, variant.session_interval):
        problems.append(
            f"sessions must be at least {variant.session_interval} day(s) apart"
        )
    for session in sessions:
        if not is_session_available(session, calendar, config, today, now):
            problems.append(
                f"session on {session.date} at {session.start_time} is not available"
            )
    if problems:
        logger.debug("Individual session selection rejected: %s", problems)
    return problems


def validate_individual_sessions(
    selection: MultiUnitSelection[SessionSelection],
    variant: ServiceVariant,
    calendar: CalendarLike,
    config: ServiceConfig,
    today: date,
    now: Optional[datetime] = None,
) -> bool:
    return not check_individual_sessions(selection, variant, calendar, config, today, now)


# ------------------------------------------------------------------
# Collective
# ------------------------------------------------------------------

def can_select_collective_slot(
    slot: CollectiveSlot,
    participants: int,
    today: date,
    now: Optional[datetime] = None,
) -> bool:
    """Active, upcoming, far enough ahead, and with room for every participant."""
    if not slot.is_active or slot.date < today:
        return False
    if now is not None and not is_slot_bookable(
        slot.date, slot.start_time, now, settings.schedule.min_booking_lead_time_hours
    ):
        return False
    return slot.available_spots >= participants


def check_collective_selection(
    selection: MultiUnitSelection[str],
    slots_by_id: Mapping[str, CollectiveSlot],
    variant: ServiceVariant,
    participants: int,
    today: date,
    now: Optional[datetime] = None,
) -> list[str]:
    """Return human-readable problems with a collective slot selection."""
    problems = []
    selected, required = selection.progress
    if selected != required:
        problems.append(f"{selected}/{required} slots selected")
    if variant.max_animals_per_session and participants > variant.max_animals_per_session:
        problems.append(
            f"at most {variant.max_animals_per_session} animals per session"
        )
    for slot_id in selection.items:
        slot = slots_by_id.get(slot_id)
        if slot is None:
            problems.append(f"slot {slot_id} does not exist")
        elif not can_select_collective_slot(slot, participants, today, now):
            problems.append(f"slot {slot_id} on {slot.date} is not available")
    if problems:
        logger.debug("Collective selection rejected: %s", problems)
    return problems


def validate_collective_selection(
    selection: MultiUnitSelection[str],
    slots_by_id: Mapping[str, CollectiveSlot],
    variant: ServiceVariant,
    participants: int,
    today: date,
    now: Optional[datetime] = None,
) -> bool:
    return not check_collective_selection(selection, slots_by_id, variant, participants, today, now)


def upcoming_collective_slots(
    slots: Sequence[CollectiveSlot],
    participants: int,
    today: date,
    now: Optional[datetime] = None,
) -> list[CollectiveSlot]:
    """Selectable slots ordered by date then start time."""
    selectable = [s for s in slots if can_select_collective_slot(s, participants, today, now)]
    return sorted(selectable, key=lambda s: (s.date, s.start_time))


# ------------------------------------------------------------------
# Pricing
# ------------------------------------------------------------------

def calculate_multi_unit_price(
    variant: ServiceVariant, participants: int = 1, options_total: int = 0
) -> MultiUnitPrice:
    """
    Flat per-session price times occurrences, times participants for
    collective formulas, plus options.
    """
    if not variant.is_collective:
        participants = 1
    total = variant.price * variant.number_of_sessions * participants + options_total
    return MultiUnitPrice(
        unit_price=variant.price,
        occurrences=variant.number_of_sessions,
        participants=participants,
        options_amount=options_total,
        total_amount=total,
    )
