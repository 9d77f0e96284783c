"""
Cache tags and the tag sets affected by a booking or room change.
"""

from datetime import date, datetime, tzinfo

from ...domain import Booking
from ..slots.config import local_midnight


class CacheTags:
    ROOMS_ALL = "meeting-rooms"
    ROOM_BY_ID = "meeting-room-by-{id}"
    ROOM_FOR_BOOKING = "meeting-room-for-booking-{id}"
    BOOKINGS_ALL = "bookings-all"
    BOOKINGS_UPCOMING = "bookings-upcoming"
    BOOKINGS_BY_ROOM = "bookings-by-room-{roomId}"
    BOOKINGS_BY_USER = "booking-by-user-{userId}"
    BOOKINGS_FOR_DATE = "bookings-for-date-{roomId}-{date}"
    BOOKING_BY_ID = "booking-by-{id}"


def room_tag(room_id: str) -> str:
    return CacheTags.ROOM_BY_ID.format(id=room_id)


def booking_tag(booking_id: str) -> str:
    return CacheTags.BOOKING_BY_ID.format(id=booking_id)


def user_bookings_tag(user_id: str) -> str:
    return CacheTags.BOOKINGS_BY_USER.format(userId=user_id)


def room_bookings_tag(room_id: str) -> str:
    return CacheTags.BOOKINGS_BY_ROOM.format(roomId=room_id)


def bookings_for_date_tag(room_id: str, day: date | datetime, tz: tzinfo) -> str:
    """``day`` is a date, or a datetime whose local calendar day is used."""
    if isinstance(day, datetime):
        day = day.astimezone(tz).date()
    midnight = local_midnight(day, tz)
    return CacheTags.BOOKINGS_FOR_DATE.format(roomId=room_id, date=midnight.isoformat())


def keys_for_booking(booking: Booking, tz: tzinfo) -> set[str]:
    """Every tag whose cached read could include ``booking``."""
    keys = {
        CacheTags.BOOKINGS_ALL,
        CacheTags.BOOKINGS_UPCOMING,
        booking_tag(booking.id),
    }
    if booking.user_id:
        keys.add(user_bookings_tag(booking.user_id))
    if booking.room_id:
        keys.add(room_bookings_tag(booking.room_id))
        if booking.start_time is not None:
            keys.add(bookings_for_date_tag(booking.room_id, booking.start_time, tz))
            # a booking crossing local midnight also shows on the next day
            if booking.end_time is not None:
                end_day = booking.end_time.astimezone(tz)
                if end_day.date() != booking.start_time.astimezone(tz).date() and (
                    end_day.hour or end_day.minute or end_day.second
                ):
                    keys.add(bookings_for_date_tag(booking.room_id, end_day, tz))
    return keys


def keys_for_room(room_id: str) -> set[str]:
    return {
        CacheTags.ROOMS_ALL,
        room_tag(room_id),
        CacheTags.ROOM_FOR_BOOKING.format(id=room_id),
    }
