"""
Plain records the engine works on.

The record store maps its rows onto these; slots are derived and never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

DEFAULT_OPEN_SECONDS = 28800    # 08:00
DEFAULT_CLOSE_SECONDS = 64800   # 18:00


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    capacity: int = 0
    notes: Optional[str] = None
    location: Optional[str] = None
    open_seconds: int = DEFAULT_OPEN_SECONDS
    close_seconds: int = DEFAULT_CLOSE_SECONDS
    max_meeting_hours: Optional[float] = None
    status: RoomStatus = RoomStatus.AVAILABLE
    tags: list[str] = field(default_factory=list)
    image_url: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status == RoomStatus.AVAILABLE


@dataclass(frozen=True)
class Booking:
    id: str
    user_id: str
    room_id: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    user_label: str = ""
    room_name: Optional[str] = None
    room_location: Optional[str] = None
    note: str = ""
    status: BookingStatus = BookingStatus.CONFIRMED

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @classmethod
    def stub(cls, booking_id: str) -> "Booking":
        """Placeholder for a booking whose fields can no longer be read."""
        return cls(id=booking_id, user_id="", room_id="", start_time=None, end_time=None)


@dataclass(frozen=True)
class TimeSlot:
    start_time: datetime
    end_time: datetime
    label: str
    is_booked: bool
    is_past: bool
    booking: Optional[Booking] = None

    @property
    def is_available(self) -> bool:
        return not self.is_booked and not self.is_past
