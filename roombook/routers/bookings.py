# roombook/routers/bookings.py
# POST = create (rate limited), PATCH = status only (Confirmed | Cancelled)

from fastapi import APIRouter, Depends, status

from ..config import settings
from ..dependencies import get_booking_service
from ..errors import ValidationError
from ..middleware.auth import Identity, get_current_user
from ..middleware.rate_limit import rate_limit
from ..schemas.bookings import BookingCreate, BookingRead, BookingStatusUpdate
from ..services.bookings import BookingService
from ..services.validation import is_valid_booking_id

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _check_booking_id(booking_id: str) -> None:
    if not is_valid_booking_id(booking_id):
        raise ValidationError("Invalid booking ID format")


@router.get("", response_model=list[BookingRead])
def list_bookings(
    user: Identity = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_all()


@router.get("/upcoming", response_model=list[BookingRead])
def list_upcoming_bookings(
    user: Identity = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_upcoming()


@router.get("/mine", response_model=list[BookingRead])
def list_my_bookings(
    user: Identity = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_for_user(user.user_id)


@router.get("/{booking_id}", response_model=BookingRead)
def get_booking(
    booking_id: str,
    user: Identity = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    _check_booking_id(booking_id)
    return service.get(booking_id)


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    user: Identity = Depends(rate_limit("booking", settings.booking_create_limit)),
    service: BookingService = Depends(get_booking_service),
):
    return service.create(data, user_id=user.user_id, user_label=user.name)


@router.patch("/{booking_id}", response_model=BookingRead)
def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    user: Identity = Depends(rate_limit("update", settings.booking_update_limit)),
    service: BookingService = Depends(get_booking_service),
):
    _check_booking_id(booking_id)
    return service.update_status(booking_id, data.status, user_id=user.user_id)
