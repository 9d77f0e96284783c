# roombook/routers/rooms.py
# Rooms are read-only here; they are edited in the record store.

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_booking_service, get_room_queries
from ..errors import ValidationError
from ..schemas.bookings import BookingRead
from ..schemas.rooms import RoomRead
from ..schemas.slots import SlotRead
from ..services.bookings import BookingService
from ..services.rooms import RoomQueries
from ..services.slots import generate_slots
from ..services.validation import is_valid_room_id

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _check_room_id(room_id: str) -> None:
    if not is_valid_room_id(room_id):
        raise ValidationError("Invalid room ID format")


@router.get("", response_model=list[RoomRead])
def list_rooms(rooms: RoomQueries = Depends(get_room_queries)):
    return rooms.list()


@router.get("/{room_id}", response_model=RoomRead)
def get_room(room_id: str, rooms: RoomQueries = Depends(get_room_queries)):
    _check_room_id(room_id)
    return rooms.get(room_id)


@router.get("/{room_id}/slots", response_model=list[SlotRead])
def get_room_slots(
    room_id: str,
    target_date: date = Query(..., alias="date"),
    rooms: RoomQueries = Depends(get_room_queries),
    bookings: BookingService = Depends(get_booking_service),
):
    """30-minute grid of the room's operating hours on ``date``."""
    _check_room_id(room_id)
    room = rooms.get(room_id)
    day_bookings = bookings.list_for_day(room.id, target_date)

    # is_past is derived per request, never cached
    now = datetime.now(timezone.utc)
    slots = generate_slots(room, target_date, day_bookings, now=now, config=bookings.config)
    return [SlotRead.from_slot(s) for s in slots]


@router.get("/{room_id}/bookings", response_model=list[BookingRead])
def list_room_bookings(
    room_id: str,
    rooms: RoomQueries = Depends(get_room_queries),
    bookings: BookingService = Depends(get_booking_service),
):
    _check_room_id(room_id)
    rooms.get(room_id)
    return bookings.list_for_room(room_id)
