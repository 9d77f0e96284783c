"""
Record-store adapter.

Maps the ``rooms``/``bookings`` tables onto the engine's plain records.
Reads here are always fresh; cached reads go through ``cache.store``.
"""

import json
import logging
import secrets
import string
from datetime import datetime

from sqlalchemy.orm import Session

from ..domain import (
    DEFAULT_CLOSE_SECONDS,
    DEFAULT_OPEN_SECONDS,
    Booking,
    BookingStatus,
    Room,
    RoomStatus,
)
from ..models.tables import Bookings as DBBookings
from ..models.tables import Rooms as DBRooms
from .slots.config import from_storage, to_storage

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits

# fields a booking update may touch
_MUTABLE_BOOKING_FIELDS = {"status"}


def new_record_id() -> str:
    """"rec" + 14 alphanumerics, the record-store id shape."""
    return "rec" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(14))


class RecordStore:
    """Room/booking queries over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # ── Rooms ────────────────────────────────────────────────────────────

    def fetch_room(self, room_id: str) -> Room | None:
        obj = self.db.get(DBRooms, room_id)
        return parse_room(obj) if obj else None

    def fetch_rooms(self) -> list[Room]:
        rows = self.db.query(DBRooms).order_by(DBRooms.name).all()
        return [parse_room(r) for r in rows]

    # ── Bookings ─────────────────────────────────────────────────────────

    def fetch_booking(self, booking_id: str) -> Booking | None:
        obj = self.db.get(DBBookings, booking_id)
        return parse_booking(obj) if obj else None

    def fetch_bookings(
        self,
        room_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: str | None = None,
        exclude_cancelled: bool = True,
    ) -> list[Booking]:
        """
        Bookings matching every given filter.

        ``start``/``end`` select bookings overlapping ``[start, end)``;
        either bound may be omitted.
        """
        q = self.db.query(DBBookings)
        if room_id is not None:
            q = q.filter(DBBookings.room_id == room_id)
        if user_id is not None:
            q = q.filter(DBBookings.user_id == user_id)
        if end is not None:
            q = q.filter(DBBookings.start_time < to_storage(end))
        if start is not None:
            q = q.filter(DBBookings.end_time > to_storage(start))
        if exclude_cancelled:
            q = q.filter(DBBookings.status != BookingStatus.CANCELLED.value)

        rows = q.order_by(DBBookings.start_time).all()
        return [parse_booking(r) for r in rows]

    def create_booking_record(self, fields: dict) -> Booking:
        obj = DBBookings(
            id=new_record_id(),
            user_id=fields["user_id"],
            user_label=fields.get("user_label") or "",
            room_id=fields["room_id"],
            room_name=fields.get("room_name"),
            room_location=fields.get("room_location"),
            start_time=to_storage(fields["start_time"]),
            end_time=to_storage(fields["end_time"]),
            note=fields.get("note") or "",
            status=BookingStatus.CONFIRMED.value,
        )
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        logger.info(f"Booking record created: {obj.id} room={obj.room_id}")
        return parse_booking(obj)

    def update_booking_record(self, booking_id: str, fields: dict) -> Booking | None:
        unknown = set(fields) - _MUTABLE_BOOKING_FIELDS
        if unknown:
            raise ValueError(f"Booking fields are immutable: {', '.join(sorted(unknown))}")

        obj = self.db.get(DBBookings, booking_id)
        if not obj:
            return None

        for field, value in fields.items():
            setattr(obj, field, value.value if isinstance(value, BookingStatus) else value)
        obj.updated_at = to_storage(datetime.now().astimezone())

        self.db.commit()
        self.db.refresh(obj)
        return parse_booking(obj)


# ── Parsing ──────────────────────────────────────────────────────────────


def parse_room(obj: DBRooms) -> Room:
    try:
        tags = json.loads(obj.tags) if obj.tags else []
    except json.JSONDecodeError:
        tags = []

    return Room(
        id=obj.id,
        name=obj.name,
        capacity=obj.capacity or 0,
        notes=obj.notes,
        location=obj.location,
        open_seconds=DEFAULT_OPEN_SECONDS if obj.start_time is None else int(obj.start_time),
        close_seconds=DEFAULT_CLOSE_SECONDS if obj.end_time is None else int(obj.end_time),
        max_meeting_hours=float(obj.max_meeting_hours) if obj.max_meeting_hours else None,
        status=_room_status(obj.status),
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        image_url=obj.image_url,
    )


def parse_booking(obj: DBBookings) -> Booking:
    return Booking(
        id=obj.id,
        user_id=obj.user_id,
        user_label=obj.user_label or "",
        room_id=obj.room_id,
        room_name=obj.room_name,
        room_location=obj.room_location,
        start_time=from_storage(obj.start_time),
        end_time=from_storage(obj.end_time),
        note=obj.note or "",
        status=_booking_status(obj.status),
    )


def _room_status(value: str | None) -> RoomStatus:
    try:
        return RoomStatus(value) if value else RoomStatus.AVAILABLE
    except ValueError:
        logger.warning(f"Unknown room status {value!r}, treating as Unavailable")
        return RoomStatus.UNAVAILABLE


def _booking_status(value: str | None) -> BookingStatus:
    try:
        return BookingStatus(value) if value else BookingStatus.CONFIRMED
    except ValueError:
        logger.warning(f"Unknown booking status {value!r}, treating as Cancelled")
        return BookingStatus.CANCELLED
