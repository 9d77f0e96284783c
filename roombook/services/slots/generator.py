"""
Slot grid for one room on one day.

Produces fixed-width slots between the room's opening and closing time:
  [open, open+30m), [open+30m, open+60m), ...
A trailing span shorter than one slot is dropped.

Contains:
✓ overlap with the bookings handed in (half-open intervals)
✓ past flag against wall-clock time at call time

Does NOT contain:
✗ filtering bookings by room, date or status (caller's job)
✗ caching: slots are a view, recomputed per call
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from ...domain import Booking, Room, TimeSlot
from .config import BookingConfig, get_booking_config, local_midnight, seconds_to_time_str


def generate_slots(
    room: Room,
    target_date: date,
    bookings: Iterable[Booking],
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> list[TimeSlot]:
    """
    Build the ordered slot grid for ``room`` on ``target_date``.

    Args:
        room: Room whose operating hours bound the grid
        target_date: Calendar day (a datetime's time-of-day is ignored)
        bookings: Already filtered to the room and the day
        now: Reference for ``is_past``; defaults to the current time
        config: Slot width and timezone

    Returns:
        List of TimeSlot, ``floor((close - open) / step)`` long.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)
    if isinstance(target_date, datetime):
        target_date = target_date.date()

    step = config.slot_step_seconds
    midnight = local_midnight(target_date, config.tz)
    bookings = list(bookings)

    slots: list[TimeSlot] = []
    t = room.open_seconds
    while t + step <= room.close_seconds:
        slot_start = midnight + timedelta(seconds=t)
        slot_end = slot_start + timedelta(seconds=step)

        conflicting = _first_overlap(slot_start, slot_end, bookings)

        slots.append(TimeSlot(
            start_time=slot_start,
            end_time=slot_end,
            label=seconds_to_time_str(t),
            is_booked=conflicting is not None,
            is_past=slot_end <= now,
            booking=conflicting,
        ))
        t += step

    return slots


def _first_overlap(
    slot_start: datetime,
    slot_end: datetime,
    bookings: list[Booking],
) -> Booking | None:
    # at most one confirmed booking can overlap; the first found wins otherwise
    for booking in bookings:
        if booking.start_time is None or booking.end_time is None:
            continue
        if slot_start < booking.end_time and slot_end > booking.start_time:
            return booking
    return None
