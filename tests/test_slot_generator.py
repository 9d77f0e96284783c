"""Tests for the daily slot grid."""

from datetime import datetime, timezone

import pytest
from conftest import DAY, NOW, at

from roombook.domain import Booking, BookingStatus, Room
from roombook.services.slots import BookingConfig, generate_slots


def make_booking(start, end, booking_id="recAAAAAAAAAAAAAA", **fields) -> Booking:
    return Booking(id=booking_id, user_id="U0000OWNER", room_id="room-a", start_time=start, end_time=end, **fields)


@pytest.fixture(name="board_room")
def board_room_fixture() -> Room:
    return Room(id="room-a", name="Board Room")


def test_default_hours_give_twenty_slots(board_room):
    slots = generate_slots(board_room, DAY, [], now=NOW)

    assert len(slots) == 20
    assert slots[0].label == "08:00"
    assert slots[-1].label == "17:30"
    assert slots[0].start_time == at(8)
    assert slots[-1].end_time == at(18)
    assert all(s.is_available for s in slots)


def test_slots_are_contiguous(board_room):
    slots = generate_slots(board_room, DAY, [], now=NOW)

    for prev, nxt in zip(slots, slots[1:]):
        assert prev.end_time == nxt.start_time


def test_trailing_partial_slot_is_dropped():
    room = Room(id="room-b", name="Huddle", open_seconds=8 * 3600, close_seconds=9 * 3600 + 15 * 60)

    slots = generate_slots(room, DAY, [], now=NOW)

    assert [s.label for s in slots] == ["08:00", "08:30"]


def test_closed_room_has_no_slots():
    room = Room(id="room-c", name="Closet", open_seconds=36000, close_seconds=36000)

    assert generate_slots(room, DAY, [], now=NOW) == []


def test_booking_marks_overlapping_slots(board_room):
    booking = make_booking(at(9), at(10))

    slots = generate_slots(board_room, DAY, [booking], now=NOW)
    booked = [s.label for s in slots if s.is_booked]

    assert booked == ["09:00", "09:30"]
    assert slots[2].booking == booking
    assert not slots[2].is_available


def test_adjacent_booking_does_not_mark_neighbours(board_room):
    booking = make_booking(at(8, 30), at(9))

    slots = generate_slots(board_room, DAY, [booking], now=NOW)

    assert [s.label for s in slots if s.is_booked] == ["08:30"]


def test_partial_overlap_marks_both_slots(board_room):
    booking = make_booking(at(9, 15), at(9, 45))

    slots = generate_slots(board_room, DAY, [booking], now=NOW)

    assert [s.label for s in slots if s.is_booked] == ["09:00", "09:30"]


def test_first_overlapping_booking_is_attached(board_room):
    first = make_booking(at(9), at(10), booking_id="recAAAAAAAAAAAAA1")
    second = make_booking(at(9), at(9, 30), booking_id="recAAAAAAAAAAAAA2")

    slots = generate_slots(board_room, DAY, [first, second], now=NOW)

    assert slots[2].booking.id == first.id


def test_bookings_without_times_are_ignored(board_room):
    stub = Booking.stub("recAAAAAAAAAAAAAA")

    slots = generate_slots(board_room, DAY, [stub], now=NOW)

    assert not any(s.is_booked for s in slots)


def test_past_flag_uses_slot_end(board_room):
    now = at(9, 15)

    slots = generate_slots(board_room, DAY, [], now=now)
    by_label = {s.label: s for s in slots}

    assert by_label["08:30"].is_past
    # in progress, not yet past
    assert not by_label["09:00"].is_past
    assert not by_label["09:30"].is_past
    assert not by_label["08:30"].is_available


def test_slot_ending_exactly_now_is_past(board_room):
    slots = generate_slots(board_room, DAY, [], now=at(9))

    assert slots[1].is_past
    assert not slots[2].is_past


def test_booked_and_past_are_independent(board_room):
    booking = make_booking(at(8), at(9), status=BookingStatus.CONFIRMED)

    slots = generate_slots(board_room, DAY, [booking], now=at(12))

    assert slots[0].is_booked and slots[0].is_past
    assert slots[4].is_past and not slots[4].is_booked


def test_datetime_target_uses_calendar_day(board_room):
    slots = generate_slots(board_room, datetime(2024, 3, 15, 13, 45, tzinfo=timezone.utc), [], now=NOW)

    assert slots[0].start_time == at(8)


def test_grid_follows_configured_timezone(board_room):
    config = BookingConfig(timezone="Europe/Berlin")

    slots = generate_slots(board_room, DAY, [], now=NOW, config=config)

    # CET is UTC+1 in March before the DST switch
    assert slots[0].start_time == at(7)
    assert slots[0].label == "08:00"
