"""Tests for the authoritative booking commit and its snapshot source."""

from datetime import date

import pytest
from pydantic import ValidationError

from pawbook.engine import IssueCode, build_commit_payload, quote_booking, validate_booking_request
from pawbook.schemas import (
    BookingCommitPayload,
    BookingError,
    BookingRequest,
    DayStatus,
    SessionSelection,
)
from pawbook.tools import availability, booking
from tests.conftest import TODAY, make_request

ANNOUNCER = "ann-1"
NOV_10 = date(2026, 11, 10)


def _client_calendar(config, *days):
    """What the client fetched when it opened the calendar."""
    return {day: availability.get_day_snapshot(ANNOUNCER, day, config) for day in days}


def _quote(request, config, variant, calendar, **kwargs):
    return quote_booking(
        request, config, variant, calendar, TODAY, commission_rate=15, workday_hours=8, **kwargs
    )


def _book(request, config, variant):
    quote = _quote(request, config, variant, _client_calendar(config, NOV_10))
    assert quote.can_proceed
    return booking.create_booking(quote.payload, ANNOUNCER, config, variant, TODAY)


class TestCreateBooking:
    def test_successful_commit(self, garde_config, garde_variant):
        result = _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant)
        assert result.success
        assert result.booking_id.startswith("BK-")
        record = booking.get_booking(result.booking_id)
        assert record["status"] == "confirmed"
        assert record["payload"].calculated_amount == 2400
        assert record["attempt_id"].startswith("ATT-")

    def test_lost_race_is_retryable(self, garde_config, garde_variant):
        calendar = _client_calendar(garde_config, NOV_10)
        first = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant, calendar)
        second = _quote(make_request(start_time="10:00", end_time="11:00"), garde_config, garde_variant, calendar)
        assert first.can_proceed and second.can_proceed

        assert booking.create_booking(first.payload, ANNOUNCER, garde_config, garde_variant, TODAY).success
        result = booking.create_booking(second.payload, ANNOUNCER, garde_config, garde_variant, TODAY)
        assert not result.success
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE
        assert result.retryable

    def test_back_to_back_commits(self, garde_config, garde_variant):
        assert _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant).success
        assert _book(make_request(start_time="12:00", end_time="14:00"), garde_config, garde_variant).success

    def test_other_announcer_not_affected(self, garde_config, garde_variant):
        assert _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant).success
        quote = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant,
                       _client_calendar(garde_config, NOV_10))
        result = booking.create_booking(quote.payload, "ann-2", garde_config, garde_variant, TODAY)
        assert result.success

    def test_tampered_amount(self, garde_config, garde_variant):
        quote = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant,
                       _client_calendar(garde_config, NOV_10))
        payload = quote.payload.model_copy(update={"calculated_amount": 1})
        result = booking.create_booking(payload, ANNOUNCER, garde_config, garde_variant, TODAY)
        assert result.error == BookingError.INVALID_REQUEST
        assert not result.retryable

    def test_payload_for_other_formula(self, garde_config, garde_variant, walk_variant):
        quote = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant,
                       _client_calendar(garde_config, NOV_10))
        result = booking.create_booking(quote.payload, ANNOUNCER, garde_config, walk_variant, TODAY)
        assert result.error == BookingError.INVALID_REQUEST

    def test_past_date_is_invalid_not_retryable(self, garde_config, garde_variant):
        request = make_request(start_time="09:00", end_time="12:00")
        payload = build_commit_payload(request, garde_config, garde_variant, 2400)
        result = booking.create_booking(payload, ANNOUNCER, garde_config, garde_variant, date(2026, 11, 20))
        assert result.error == BookingError.INVALID_REQUEST
        assert not result.retryable

    @pytest.mark.parametrize("update", [
        {"start_time": "9am"},
        {"end_time": "25:00"},
        {"participant_count": 0},
    ])
    def test_malformed_payload_returns_result(self, garde_config, garde_variant, update):
        quote = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant,
                       _client_calendar(garde_config, NOV_10))
        payload = quote.payload.model_copy(update=update)
        result = booking.create_booking(payload, ANNOUNCER, garde_config, garde_variant, TODAY)
        assert not result.success
        assert result.error == BookingError.INVALID_REQUEST
        assert not result.retryable
        assert booking.list_active_bookings(ANNOUNCER) == []

    def test_payload_schema_rejects_bad_fields(self):
        with pytest.raises(ValidationError):
            BookingCommitPayload(
                service_id="svc-garde", variant_id="var-garde", start_date=NOV_10, end_date=NOV_10,
                start_time="9am", calculated_amount=2400,
            )
        with pytest.raises(ValidationError):
            BookingCommitPayload(
                service_id="svc-garde", variant_id="var-garde", start_date=NOV_10, end_date=NOV_10,
                participant_count=0, calculated_amount=2400,
            )

    def test_day_closed_after_quote(self, garde_config, garde_variant):
        quote = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant,
                       _client_calendar(garde_config, NOV_10))
        availability.set_availability(ANNOUNCER, NOV_10, DayStatus.UNAVAILABLE)
        result = booking.create_booking(quote.payload, ANNOUNCER, garde_config, garde_variant, TODAY)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE


class TestBuffers:
    def _walk(self, start_time):
        return make_request(service_id="svc-walk", variant_id="var-walk", start_time=start_time)

    def test_buffer_rejects_adjacent_walk(self, walk_config, walk_variant):
        calendar = _client_calendar(walk_config, NOV_10)
        stale = _quote(self._walk("11:00"), walk_config, walk_variant, calendar)
        assert _book(self._walk("10:00"), walk_config, walk_variant).success

        result = booking.create_booking(stale.payload, ANNOUNCER, walk_config, walk_variant, TODAY)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE

    def test_walk_after_both_buffers(self, walk_config, walk_variant):
        assert _book(self._walk("10:00"), walk_config, walk_variant).success
        assert _book(self._walk("11:30"), walk_config, walk_variant).success

    def test_snapshot_folds_buffers(self, walk_config, walk_variant):
        assert _book(self._walk("10:00"), walk_config, walk_variant).success
        snapshot = availability.get_day_snapshot(ANNOUNCER, NOV_10, walk_config)
        window = snapshot.booked_slots[0]
        assert (window.start_time, window.end_time) == ("09:45", "11:15")


class TestSessionCommit:
    def _pack(self, *days, start="09:00", end="10:00"):
        sessions = [SessionSelection(date=date(2026, 11, d), start_time=start, end_time=end) for d in days]
        return BookingRequest(
            service_id="svc-edu", variant_id="var-pack3", start_date=sessions[0].date, sessions=sessions
        )

    def _quote_pack(self, request, config, variant):
        calendar = _client_calendar(config, *{s.date for s in request.sessions})
        return _quote(request, config, variant, calendar)

    def _commit(self, quote, config, variant):
        return booking.create_booking(quote.payload, ANNOUNCER, config, variant, TODAY)

    def test_pack_commit_blocks_each_session(self, session_config, pack_variant):
        quote = self._quote_pack(self._pack(10, 12, 14), session_config, pack_variant)
        assert quote.can_proceed
        assert self._commit(quote, session_config, pack_variant).success

        for day in (10, 12, 14):
            snapshot = availability.get_day_snapshot(ANNOUNCER, date(2026, 11, day), session_config)
            assert [(w.start_time, w.end_time) for w in snapshot.booked_slots] == [("09:00", "10:00")]
        snapshot = availability.get_day_snapshot(ANNOUNCER, date(2026, 11, 11), session_config)
        assert snapshot.booked_slots == []

    def test_later_pack_on_session_day_rejected(self, session_config, pack_variant):
        assert self._commit(
            self._quote_pack(self._pack(10, 12, 14), session_config, pack_variant),
            session_config, pack_variant,
        ).success

        quote = self._quote_pack(self._pack(12, 16, 18, start="09:30", end="10:30"), session_config, pack_variant)
        assert IssueCode.SESSIONS_INVALID in {i.code for i in quote.issues}

    def test_stale_pack_quote_loses_race(self, session_config, pack_variant):
        first = self._quote_pack(self._pack(10, 12, 14), session_config, pack_variant)
        second = self._quote_pack(self._pack(12, 16, 18, start="09:30", end="10:30"), session_config, pack_variant)
        assert first.can_proceed and second.can_proceed

        assert self._commit(first, session_config, pack_variant).success
        result = self._commit(second, session_config, pack_variant)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE
        assert result.retryable

    def test_fixed_duration_session_blocks_full_duration(self, walk_config, pack_variant):
        config = walk_config.model_copy(update={"service_id": "svc-edu"})
        first = self._quote_pack(self._pack(10, 12, 14, start="10:00", end="10:05"), config, pack_variant)
        second = self._quote_pack(self._pack(10, 16, 18, start="10:10", end="11:10"), config, pack_variant)
        assert first.can_proceed and second.can_proceed

        assert self._commit(first, config, pack_variant).success
        snapshot = availability.get_day_snapshot(ANNOUNCER, NOV_10, config)
        assert [(w.start_time, w.end_time) for w in snapshot.booked_slots] == [("09:45", "11:15")]

        result = self._commit(second, config, pack_variant)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE


class TestCapacityCommit:
    def _stay(self):
        return make_request(service_id="svc-board", variant_id="var-board")

    def test_capacity_exhausted(self, boarding_config, boarding_variant):
        for _ in range(3):
            assert _book(self._stay(), boarding_config, boarding_variant).success
        calendar = _client_calendar(boarding_config, NOV_10)
        quote = _quote(self._stay(), boarding_config, boarding_variant, calendar)
        assert IssueCode.CAPACITY_EXHAUSTED in {i.code for i in quote.issues}

    def test_last_place_race(self, boarding_config, boarding_variant):
        for _ in range(2):
            assert _book(self._stay(), boarding_config, boarding_variant).success
        calendar = _client_calendar(boarding_config, NOV_10)
        first = _quote(self._stay(), boarding_config, boarding_variant, calendar)
        second = _quote(self._stay(), boarding_config, boarding_variant, calendar)

        assert booking.create_booking(first.payload, ANNOUNCER, boarding_config, boarding_variant, TODAY).success
        result = booking.create_booking(second.payload, ANNOUNCER, boarding_config, boarding_variant, TODAY)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE

    def test_snapshot_counts_animals(self, boarding_config, boarding_variant):
        request = self._stay().model_copy(update={"participant_count": 2})
        assert _book(request, boarding_config, boarding_variant).success
        assert availability.get_day_snapshot(ANNOUNCER, NOV_10, boarding_config).booked_count == 2


class TestCollectiveCommit:
    def _request(self, participants):
        return BookingRequest(
            service_id="svc-group", variant_id="var-group", start_date=NOV_10,
            collective_slot_ids=["slot-a", "slot-b"], participant_count=participants,
        )

    def _commit(self, participants, config, variant):
        slots = {sid: booking.get_collective_slot(sid) for sid in ("slot-a", "slot-b")}
        quote = _quote(self._request(participants), config, variant, {}, collective_slots=slots)
        return quote, booking.create_booking(quote.payload, ANNOUNCER, config, variant, TODAY)

    @pytest.fixture(autouse=True)
    def publish(self, group_slots):
        for slot in group_slots.values():
            booking.publish_collective_slot(slot)

    def test_booking_takes_spots(self, group_config, group_variant):
        quote, result = self._commit(3, group_config, group_variant)
        assert result.success
        assert quote.amount == 9000
        assert booking.get_collective_slot("slot-a").booked_animals == 3
        assert booking.get_available_collective_slots("var-group", 2, TODAY) == []

    def test_not_enough_spots_left(self, group_config, group_variant):
        assert self._commit(3, group_config, group_variant)[1].success
        slots = {sid: booking.get_collective_slot(sid) for sid in ("slot-a", "slot-b")}
        slots = {sid: s.model_copy(update={"booked_animals": 0}) for sid, s in slots.items()}
        stale = _quote(self._request(2), group_config, group_variant, {}, collective_slots=slots)
        result = booking.create_booking(stale.payload, ANNOUNCER, group_config, group_variant, TODAY)
        assert result.error == BookingError.SLOT_NO_LONGER_AVAILABLE

    def test_cancel_releases_spots(self, group_config, group_variant):
        _, result = self._commit(3, group_config, group_variant)
        assert booking.cancel_booking(result.booking_id).success
        assert booking.get_collective_slot("slot-a").booked_animals == 0


class TestCancelAndQuery:
    def test_cancel_frees_slot(self, garde_config, garde_variant):
        calendar = _client_calendar(garde_config, NOV_10)
        first = _quote(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant, calendar)
        second = _quote(make_request(start_time="10:00", end_time="11:00"), garde_config, garde_variant, calendar)
        created = booking.create_booking(first.payload, ANNOUNCER, garde_config, garde_variant, TODAY)

        assert booking.cancel_booking(created.booking_id).success
        assert booking.create_booking(second.payload, ANNOUNCER, garde_config, garde_variant, TODAY).success

    def test_cancel_unknown(self):
        result = booking.cancel_booking("BK-NOPE")
        assert result.error == BookingError.NOT_FOUND

    def test_list_active_bookings(self, garde_config, garde_variant):
        created = _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant)
        assert len(booking.list_active_bookings(ANNOUNCER, "garde")) == 1
        booking.cancel_booking(created.booking_id)
        assert booking.list_active_bookings(ANNOUNCER) == []

    def test_month_snapshot(self, garde_config, garde_variant):
        assert _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant).success
        month = availability.get_month_snapshot(ANNOUNCER, 2026, 11, garde_config)
        assert len(month) == 30
        assert [(w.start_time, w.end_time) for w in month[9].booked_slots] == [("09:00", "12:00")]
        assert month[10].booked_slots == []

    def test_multi_day_booking_blocks_whole_days(self, garde_config, garde_variant):
        request = make_request(end_date=date(2026, 11, 12), start_time="14:00", end_time="12:00")
        calendar = {
            day: availability.get_day_snapshot(ANNOUNCER, day, garde_config)
            for day in (NOV_10, date(2026, 11, 11), date(2026, 11, 12))
        }
        quote = _quote(request, garde_config, garde_variant, calendar)
        assert booking.create_booking(quote.payload, ANNOUNCER, garde_config, garde_variant, TODAY).success

        snapshot = availability.get_day_snapshot(ANNOUNCER, date(2026, 11, 11), garde_config)
        assert [(w.start_time, w.end_time) for w in snapshot.booked_slots] == [("00:00", "24:00")]

    def test_past_status_cannot_be_set(self):
        with pytest.raises(ValueError):
            availability.set_availability(ANNOUNCER, NOV_10, DayStatus.PAST)


class TestQuoteCommitParity:
    """The client check and the commit check must agree on the same data."""

    @pytest.mark.parametrize("start,end,expected", [
        ("08:00", "09:00", True),
        ("11:00", "13:00", False),
        ("12:00", "13:00", True),
        ("09:30", "10:00", False),
    ])
    def test_same_verdict(self, garde_config, garde_variant, start, end, expected):
        assert _book(make_request(start_time="09:00", end_time="12:00"), garde_config, garde_variant).success

        request = make_request(start_time=start, end_time=end)
        fresh = _client_calendar(garde_config, NOV_10)
        client_ok = not validate_booking_request(request, garde_config, garde_variant, fresh, TODAY)

        payload = build_commit_payload(request, garde_config, garde_variant, _quote(
            request, garde_config, garde_variant, fresh).breakdown.total_amount)
        server_ok = booking.create_booking(payload, ANNOUNCER, garde_config, garde_variant, TODAY).success

        assert client_ok == server_ok == expected
