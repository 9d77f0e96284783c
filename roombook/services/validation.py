"""
Business-rule validation for a booking candidate.

Runs before any persistence. Structural shape (id format, datetimes, note
length) is enforced by ``schemas.bookings.BookingCreate``; this module checks
the rules that need the room and the clock:

- end after start
- end not already elapsed (an in-progress window is still bookable)
- duration within the room's (or the global) limit
- start and end inside the room's operating hours

Every violated rule is reported in one ValidationError.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from ..domain import Room
from ..errors import ValidationError
from .slots.config import (
    BookingConfig,
    ensure_aware,
    get_booking_config,
    local_midnight,
    seconds_since,
    seconds_to_time_str,
)

NOTE_MAX_LENGTH = 500

ROOM_ID_PATTERN = r"^rec[a-zA-Z0-9]{14}$|^[a-zA-Z0-9_-]{1,50}$"
BOOKING_ID_PATTERN = r"^rec[a-zA-Z0-9]{14}$"
USER_ID_PATTERN = r"^[UW][A-Z0-9]{8,}$"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class ValidatedBooking:
    room_id: str
    start_time: datetime
    end_time: datetime
    note: str = ""


def sanitize_text(value: str | None, limit: int = NOTE_MAX_LENGTH) -> str:
    """Drop control characters and cap the length."""
    if not value:
        return ""
    return _CONTROL_CHARS.sub("", value)[:limit]


def is_valid_room_id(value: str) -> bool:
    return bool(value) and re.match(ROOM_ID_PATTERN, value) is not None


def is_valid_booking_id(value: str) -> bool:
    return bool(value) and re.match(BOOKING_ID_PATTERN, value) is not None


def is_valid_user_id(value: str) -> bool:
    return bool(value) and re.match(USER_ID_PATTERN, value) is not None


def effective_max_hours(room: Room, config: BookingConfig) -> float:
    if room.max_meeting_hours is not None:
        return room.max_meeting_hours
    return config.max_meeting_hours


def check_duration(start: datetime, end: datetime, room: Room, config: BookingConfig) -> str | None:
    max_hours = effective_max_hours(room, config)
    hours = (end - start).total_seconds() / 3600
    if hours > max_hours:
        return (
            f"Meeting duration exceeds the maximum allowed time of "
            f"{_format_hours(max_hours)} hours for this room"
        )
    return None


def check_operating_hours(start: datetime, end: datetime, room: Room, config: BookingConfig) -> str | None:
    # both ends measured from the local midnight of the start's day, so a
    # booking ending at midnight counts as 86400
    tz = config.tz
    midnight = local_midnight(start.astimezone(tz).date(), tz)
    start_s = seconds_since(midnight, start)
    end_s = seconds_since(midnight, end)

    if start_s < room.open_seconds or end_s > room.close_seconds:
        return (
            f"Booking must be within the room's operating hours "
            f"({seconds_to_time_str(room.open_seconds)} - {seconds_to_time_str(room.close_seconds)})"
        )
    return None


def validate_booking(
    candidate,
    room: Room,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> ValidatedBooking:
    """
    Validate ``candidate`` against ``room``.

    Args:
        candidate: Object with room_id, start_time, end_time and note
        room: The room being booked
        config: Duration default and timezone
        now: Clock reference for the "already ended" check

    Raises:
        ValidationError: listing every violated rule in ``details``
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)

    start = ensure_aware(candidate.start_time)
    end = ensure_aware(candidate.end_time)

    if end <= start:
        raise ValidationError("End time must be after start time", details=[
            {"field": "endTime", "rule": "order", "message": "End time must be after start time"},
        ])

    if end <= now:
        raise ValidationError("Cannot book slots that have already ended", details=[
            {"field": "endTime", "rule": "past", "message": "Cannot book slots that have already ended"},
        ])

    violations = []
    duration_msg = check_duration(start, end, room, config)
    if duration_msg:
        violations.append({"field": "endTime", "rule": "duration", "message": duration_msg})

    hours_msg = check_operating_hours(start, end, room, config)
    if hours_msg:
        violations.append({"field": "startTime", "rule": "operating_hours", "message": hours_msg})

    if violations:
        raise ValidationError("; ".join(v["message"] for v in violations), details=violations)

    return ValidatedBooking(
        room_id=candidate.room_id,
        start_time=start,
        end_time=end,
        note=sanitize_text(getattr(candidate, "note", "")),
    )


def _format_hours(hours: float) -> str:
    return str(int(hours)) if float(hours).is_integer() else f"{hours:g}"
