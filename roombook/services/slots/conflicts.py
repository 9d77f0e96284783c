"""
Overlap detection for a candidate booking interval.

Intervals are half-open, so back-to-back bookings do not conflict.
The caller must pass a fresh (uncached) read of the room's bookings.
"""

from datetime import datetime
from typing import Iterable

from ...domain import Booking


def overlaps(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    return start_a < end_b and end_a > start_b


def find_conflicts(
    room_id: str,
    start_time: datetime,
    end_time: datetime,
    existing_bookings: Iterable[Booking],
) -> list[Booking]:
    """Active bookings of ``room_id`` overlapping ``[start_time, end_time)``."""
    return [
        b for b in existing_bookings
        if b.room_id == room_id
        and b.is_active
        and b.start_time is not None
        and b.end_time is not None
        and overlaps(b.start_time, b.end_time, start_time, end_time)
    ]


def has_conflict(
    room_id: str,
    start_time: datetime,
    end_time: datetime,
    existing_bookings: Iterable[Booking],
) -> bool:
    return bool(find_conflicts(room_id, start_time, end_time, existing_bookings))
