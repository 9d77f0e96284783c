"""Tests for cache invalidation, including webhook-driven invalidation."""

from unittest.mock import MagicMock

from conftest import DAY, NOW, OWNER, at

from roombook.domain import BookingStatus
from roombook.models.tables import Bookings as DBBookings
from roombook.schemas.bookings import BookingCreate
from roombook.schemas.webhooks import WebhookPayload
from roombook.services.cache import CacheInvalidator, CacheTags, select_payloads
from roombook.services.cache.invalidator import booking_from_fields
from roombook.services.cache.keys import booking_tag, bookings_for_date_tag
from roombook.services.slots import generate_slots
from roombook.services.slots.config import get_zone

UTC = get_zone("UTC")


def book(service, start, end, room_id="room-a", user_id=OWNER):
    return service.create(BookingCreate(room_id=room_id, start_time=start, end_time=end), user_id=user_id)


def payload(table_id, changed=None, destroyed=None, timestamp="2024-03-15T07:00:00.000Z") -> WebhookPayload:
    return WebhookPayload.model_validate({
        "timestamp": timestamp,
        "changedTablesById": {
            table_id: {
                "changedRecordsById": changed or {},
                "destroyedRecordIds": destroyed or [],
            }
        },
    })


# =============================================================================
# Payload selection
# =============================================================================


def test_latest_payload_wins():
    selected, superseded = select_payloads(["p1", "p2", "p3"])

    assert selected == ["p3"]
    assert superseded == 2


def test_all_payloads_when_latest_only_is_off():
    selected, superseded = select_payloads(["p1", "p2"], latest_only=False)

    assert selected == ["p1", "p2"]
    assert superseded == 0


def test_empty_queue():
    assert select_payloads([]) == ([], 0)


# =============================================================================
# Room cascade
# =============================================================================


def test_room_destroy_cascades_to_its_bookings(room, service, invalidator):
    bookings = [
        book(service, at(9), at(10)),
        book(service, at(11), at(12)),
        book(service, at(14), at(15)),
    ]

    result = invalidator.process_webhook_payload(payload("rooms", destroyed=["room-a"]))
    keys = result["keys"]

    assert result["tables_affected"] == 1
    assert {CacheTags.ROOMS_ALL, "meeting-room-by-room-a", "bookings-by-room-room-a"} <= keys
    assert bookings_for_date_tag("room-a", DAY, UTC) in keys
    for b in bookings:
        assert booking_tag(b.id) in keys


def test_room_cascade_skips_cancelled_bookings(room, service, invalidator):
    active = book(service, at(9), at(10))
    cancelled = book(service, at(11), at(12))
    service.update_status(cancelled.id, BookingStatus.CANCELLED, OWNER)

    keys = invalidator.room_keys("room-a")

    assert booking_tag(active.id) in keys
    assert booking_tag(cancelled.id) not in keys


def test_room_cascade_falls_back_when_bookings_cannot_be_read(cache, config):
    store = MagicMock()
    store.fetch_bookings.side_effect = RuntimeError("record store down")
    invalidator = CacheInvalidator(cache, store, config, now_fn=lambda: NOW)

    keys = invalidator.room_keys("room-a")

    assert CacheTags.BOOKINGS_ALL in keys
    assert "meeting-room-by-room-a" in keys


def test_room_change_drops_cached_slots(room, service, invalidator, fake_redis):
    book(service, at(9), at(10))
    service.list_for_day("room-a", DAY)
    tag_key = f"cache:tag:{bookings_for_date_tag('room-a', DAY, UTC)}"
    assert tag_key in fake_redis.values

    invalidator.process_webhook_payload(payload("rooms", changed={"room-a": {}}))

    assert tag_key not in fake_redis.values


# =============================================================================
# Booking changes
# =============================================================================


def test_changed_booking_uses_fresh_record(room, service, invalidator):
    booking = book(service, at(9), at(10))

    keys = invalidator.changed_booking_keys(booking.id)

    assert f"booking-by-user-{OWNER}" in keys
    assert bookings_for_date_tag("room-a", DAY, UTC) in keys


def test_changed_booking_falls_back_to_payload_fields(invalidator):
    fields = {
        "room": ["room-b"],
        "user": "U0000OTHER",
        "startTime": "2024-03-16T09:00:00.000Z",
        "endTime": "2024-03-16T10:00:00.000Z",
        "status": "Confirmed",
    }

    result = invalidator.process_webhook_payload(payload(
        "bookings",
        changed={"recZZZZZZZZZZZZZZ": {"current": {"cellValuesByFieldId": fields}}},
    ))

    assert "booking-by-user-U0000OTHER" in result["keys"]
    assert "bookings-for-date-room-b-2024-03-16T00:00:00+00:00" in result["keys"]


def test_destroyed_booking_gets_coarse_tags(invalidator):
    result = invalidator.process_webhook_payload(payload("bookings", destroyed=["recZZZZZZZZZZZZZZ"]))

    assert result["keys"] == {
        CacheTags.BOOKINGS_ALL,
        CacheTags.BOOKINGS_UPCOMING,
        "booking-by-recZZZZZZZZZZZZZZ",
    }


def test_unknown_table_is_ignored(invalidator):
    result = invalidator.process_webhook_payload(payload("tblOther", destroyed=["recZZZZZZZZZZZZZZ"]))

    assert result == {"tables_affected": 1, "keys": set()}


def test_invalidation_failure_is_swallowed(invalidator, fake_redis):
    fake_redis.fail = True

    assert invalidator.invalidate_keys({"bookings-all"}) == 0


def test_booking_from_fields():
    booking = booking_from_fields("recZZZZZZZZZZZZZZ", {"room": ["room-a"], "status": "Bogus"})

    assert booking.room_id == "room-a"
    assert booking.start_time is None
    assert booking.status == BookingStatus.CANCELLED
    assert booking_from_fields("recZZZZZZZZZZZZZZ", {}) is None



def test_destroyed_booking_uses_cached_record(db, room, service, invalidator, config):
    booking = book(service, at(9), at(10))
    service.get(booking.id)
    assert len(service.list_for_day("room-a", DAY)) == 1

    db.delete(db.get(DBBookings, booking.id))
    db.commit()
    result = invalidator.process_webhook_payload(payload("bookings", destroyed=[booking.id]))

    assert bookings_for_date_tag("room-a", DAY, UTC) in result["keys"]
    assert f"booking-by-user-{OWNER}" in result["keys"]
    assert "bookings-by-room-room-a" in result["keys"]

    day_bookings = service.list_for_day("room-a", DAY)
    slots = generate_slots(room, DAY, day_bookings, now=NOW, config=config)
    assert day_bookings == []
    assert not any(s.is_booked for s in slots)


def test_changed_booking_also_invalidates_previous_values(room, service, invalidator):
    booking = book(service, at(9), at(10))
    previous = {
        "room": ["room-b"],
        "user": OWNER,
        "startTime": "2024-03-14T09:00:00.000Z",
        "endTime": "2024-03-14T10:00:00.000Z",
    }

    result = invalidator.process_webhook_payload(payload(
        "bookings",
        changed={booking.id: {"current": {"cellValuesByFieldId": {}}, "previous": {"cellValuesByFieldId": previous}}},
    ))

    assert bookings_for_date_tag("room-a", DAY, UTC) in result["keys"]
    assert "bookings-for-date-room-b-2024-03-14T00:00:00+00:00" in result["keys"]
    assert "bookings-by-room-room-b" in result["keys"]
