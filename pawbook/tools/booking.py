"""
Mock booking store and create-booking endpoint.

In production, this is the authoritative server-side commit: it re-runs the
conflict and capacity rules inside a transaction and rejects the write if
another client got there first. Here a module-level lock serializes
check-then-write over an in-memory store.
"""

import threading
import uuid
from datetime import date, datetime, timezone
from typing import Mapping, Optional, TypedDict

from pydantic import ValidationError

from pawbook.engine import AVAILABILITY_ISSUES, quote_booking
from pawbook.logging_context import get_attempt_logger, new_attempt_id
from pawbook.schemas.availability_schema import CollectiveSlot, DaySnapshot
from pawbook.schemas.booking_schema import (
    BookingCommitPayload,
    BookingError,
    BookingRequest,
    BookingResult,
)
from pawbook.schemas.service_schema import ServiceConfig, ServiceVariant
from pawbook.scheduling.conflicts import BookingSpan
from pawbook.scheduling.multi_unit import upcoming_collective_slots
from pawbook.tools.availability import build_day_snapshot
from pawbook.utils import dates_between

logger = get_attempt_logger(__name__)


class BookingRecord(TypedDict):
    """Full booking record stored in the system."""

    booking_id: str
    announcer_id: str
    category: str
    payload: BookingCommitPayload
    status: str
    attempt_id: str
    created_at: str


_bookings: dict[str, BookingRecord] = {}
_collective_slots: dict[str, CollectiveSlot] = {}
_lock = threading.Lock()


# ------------------------------------------------------------------
# Collective slots
# ------------------------------------------------------------------

def publish_collective_slot(slot: CollectiveSlot) -> CollectiveSlot:
    """Create or replace an announcer-published collective slot."""
    with _lock:
        _collective_slots[slot.id] = slot
    logger.info("Collective slot %s published for %s on %s", slot.id, slot.variant_id, slot.date)
    return slot


def get_collective_slot(slot_id: str) -> Optional[CollectiveSlot]:
    return _collective_slots.get(slot_id)


def get_available_collective_slots(
    variant_id: str,
    participants: int,
    today: date,
    now: Optional[datetime] = None,
) -> list[CollectiveSlot]:
    """Slots of a formula that still have room for ``participants``."""
    slots = [s for s in _collective_slots.values() if s.variant_id == variant_id]
    return upcoming_collective_slots(slots, participants, today, now)


def _collective_slots_for(variant_id: str) -> dict[str, CollectiveSlot]:
    return {sid: s for sid, s in _collective_slots.items() if s.variant_id == variant_id}


def _adjust_spots(slot_ids: list[str], delta: int) -> None:
    for slot_id in slot_ids:
        slot = _collective_slots.get(slot_id)
        if slot is None:
            continue
        booked = max(0, slot.booked_animals + delta)
        _collective_slots[slot_id] = slot.model_copy(update={"booked_animals": booked})


# ------------------------------------------------------------------
# Store queries
# ------------------------------------------------------------------

def list_active_bookings(announcer_id: str, category: Optional[str] = None) -> list[BookingRecord]:
    """Non-cancelled bookings of an announcer, optionally for one category."""
    return [
        record
        for record in _bookings.values()
        if record["announcer_id"] == announcer_id
        and record["status"] != "cancelled"
        and (category is None or record["category"] == category)
    ]


def _record_spans(record: BookingRecord) -> list[tuple[BookingSpan, int]]:
    payload = record["payload"]
    # Collective bookings live on their shared slots, not the calendar
    if payload.collective_slot_ids:
        return []
    if payload.sessions:
        return [
            (BookingSpan(s.date, s.date, s.start_time, s.end_time), payload.participant_count)
            for s in payload.sessions
        ]
    span = BookingSpan(payload.start_date, payload.end_date, payload.start_time, payload.end_time)
    return [(span, payload.participant_count)]


def active_spans(announcer_id: str, category: str) -> list[tuple[BookingSpan, int]]:
    """(span, participant count) for every active booking in a category."""
    spans = []
    for record in list_active_bookings(announcer_id, category):
        spans.extend(_record_spans(record))
    return spans


def _authoritative_calendar(
    request: BookingRequest, announcer_id: str, config: ServiceConfig
) -> dict[date, DaySnapshot]:
    if request.sessions:
        days = sorted({s.date for s in request.sessions})
    else:
        days = dates_between(request.start_date, request.effective_end_date)
    spans = active_spans(announcer_id, config.category)
    return {day: build_day_snapshot(announcer_id, day, config, spans) for day in days}


# ------------------------------------------------------------------
# Commit
# ------------------------------------------------------------------

def _failure(error: BookingError, message: str) -> BookingResult:
    return BookingResult(
        success=False,
        error=error,
        retryable=error == BookingError.SLOT_NO_LONGER_AVAILABLE,
        message=message,
    )


def create_booking(
    payload: BookingCommitPayload,
    announcer_id: str,
    config: ServiceConfig,
    variant: ServiceVariant,
    today: date,
    now: Optional[datetime] = None,
) -> BookingResult:
    """
    Commit a booking if it is still valid against the store.

    Re-runs the same validation and pricing the client quote used, this time
    against snapshots built from committed bookings while holding the lock.

    Returns:
        ``SLOT_NO_LONGER_AVAILABLE`` (retryable) when the time, day, capacity
        or collective spots were taken since the quote; ``INVALID_REQUEST``
        when the payload itself is wrong.
    """
    attempt_id = new_attempt_id()

    if payload.service_id != config.service_id or payload.variant_id != variant.id:
        logger.warning("Payload %s/%s does not match service %s/%s",
                       payload.service_id, payload.variant_id, config.service_id, variant.id)
        return _failure(BookingError.INVALID_REQUEST, "Payload does not match the selected formula.")

    try:
        request = BookingRequest(
            service_id=payload.service_id,
            variant_id=payload.variant_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            include_overnight_stay=payload.overnight_nights > 0,
            selected_option_ids=payload.selected_option_ids,
            sessions=payload.sessions,
            collective_slot_ids=payload.collective_slot_ids,
            participant_count=payload.participant_count,
            location=payload.location,
        )
    except ValidationError as exc:
        logger.warning("Malformed payload rejected: %s", exc)
        return _failure(BookingError.INVALID_REQUEST, f"Malformed booking payload: {exc}")

    with _lock:
        calendar = _authoritative_calendar(request, announcer_id, config)
        collective_slots: Mapping[str, CollectiveSlot] = _collective_slots_for(variant.id)
        quote = quote_booking(
            request, config, variant, calendar, today, now=now, collective_slots=collective_slots
        )

        if quote.issues:
            messages = "; ".join(issue.message for issue in quote.issues)
            if any(issue.code in AVAILABILITY_ISSUES for issue in quote.issues):
                logger.info("Commit rejected, slot taken: %s", messages)
                return _failure(
                    BookingError.SLOT_NO_LONGER_AVAILABLE,
                    f"This slot is no longer available: {messages}",
                )
            logger.warning("Commit rejected, invalid request: %s", messages)
            return _failure(BookingError.INVALID_REQUEST, messages)

        if quote.amount != payload.calculated_amount:
            logger.warning("Amount mismatch: submitted %d, computed %d",
                           payload.calculated_amount, quote.amount)
            return _failure(
                BookingError.INVALID_REQUEST,
                f"Submitted amount {payload.calculated_amount} does not match {quote.amount}.",
            )

        booking_id = f"BK-{uuid.uuid4().hex[:6].upper()}"
        _bookings[booking_id] = {
            "booking_id": booking_id,
            "announcer_id": announcer_id,
            "category": config.category,
            "payload": payload,
            "status": "confirmed",
            "attempt_id": attempt_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        _adjust_spots(payload.collective_slot_ids, payload.participant_count)

    logger.info("Booking created: %s for %s on %s", booking_id, announcer_id, payload.start_date)
    return BookingResult(
        success=True,
        booking_id=booking_id,
        message=f"Booking confirmed. Reference number: {booking_id}.",
    )


def cancel_booking(booking_id: str) -> BookingResult:
    """Cancel an existing booking and release any collective spots."""
    with _lock:
        record = _bookings.get(booking_id)
        if record is None:
            return _failure(BookingError.NOT_FOUND, f"Booking {booking_id} not found.")
        if record["status"] != "cancelled":
            record["status"] = "cancelled"
            payload = record["payload"]
            _adjust_spots(payload.collective_slot_ids, -payload.participant_count)
    logger.info("Booking cancelled: %s", booking_id)
    return BookingResult(
        success=True, booking_id=booking_id, message=f"Booking {booking_id} has been cancelled."
    )


def get_booking(booking_id: str) -> Optional[BookingRecord]:
    """Retrieve a booking by reference number."""
    return _bookings.get(booking_id)


def reset() -> None:
    """Clear all bookings and collective slots. Used by test fixtures for isolation."""
    _bookings.clear()
    _collective_slots.clear()
