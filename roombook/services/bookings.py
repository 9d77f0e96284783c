"""
Booking lifecycle: create, change status, read.

State machine:
    (create) → Confirmed --cancel, owner only--> Cancelled (terminal)

Create path:
    room check → validation → [room lock: fresh read → conflict check →
    persist] → cache invalidation → notification event

The room lock serializes creates for one room inside this process only;
across processes the read-check-write sequence stays best-effort since the
record store offers no transaction to arbitrate.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from threading import Lock
from typing import Callable

from pydantic import TypeAdapter
from redis import Redis

from ..domain import Booking, BookingStatus
from ..errors import AuthorizationError, ConflictError, NotFoundError
from .cache.invalidator import CacheInvalidator
from .cache.keys import (
    CacheTags,
    booking_tag,
    bookings_for_date_tag,
    room_bookings_tag,
    user_bookings_tag,
)
from .cache.store import TaggedCache
from .events import emit_booking_event
from .slots.config import BookingConfig, day_bounds, get_booking_config
from .slots.conflicts import find_conflicts
from .store import RecordStore
from .validation import validate_booking

logger = logging.getLogger(__name__)

_BOOKING = TypeAdapter(Booking)
_BOOKINGS = TypeAdapter(list[Booking])

UPCOMING_CACHE_TTL = 60


class RoomLocks:
    """One lock per room id, created on first use."""

    def __init__(self):
        self._guard = Lock()
        self._locks: dict[str, Lock] = {}

    def for_room(self, room_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = Lock()
            return lock


room_locks = RoomLocks()


class BookingService:

    def __init__(
        self,
        store: RecordStore,
        invalidator: CacheInvalidator,
        cache: TaggedCache | None = None,
        redis: Redis | None = None,
        config: BookingConfig | None = None,
        locks: RoomLocks | None = None,
        bookings_cache_ttl: int = 86400,
        now_fn: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.invalidator = invalidator
        self.cache = cache
        self.redis = redis
        self.config = config or get_booking_config()
        self.locks = locks or room_locks
        self.bookings_cache_ttl = bookings_cache_ttl
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    # ── Write ────────────────────────────────────────────────────────────

    def create(self, data, user_id: str, user_label: str = "") -> Booking:
        """
        Create a Confirmed booking for ``user_id``.

        Args:
            data: Object with room_id, start_time, end_time, note
                  (e.g. ``schemas.bookings.BookingCreate``)

        Raises:
            NotFoundError: room does not exist
            ConflictError: room unavailable, or the interval is taken
            ValidationError: duration / hours / timing rules
        """
        room = self.store.fetch_room(data.room_id)
        if room is None:
            raise NotFoundError("Room not found")

        if not room.is_available:
            raise ConflictError("Room is unavailable for booking")

        validated = validate_booking(data, room, self.config, now=self._now())

        with self.locks.for_room(room.id):
            existing = self.store.fetch_bookings(
                room_id=room.id,
                start=validated.start_time,
                end=validated.end_time,
            )
            conflicts = find_conflicts(room.id, validated.start_time, validated.end_time, existing)
            if conflicts:
                logger.info(
                    f"Booking conflict in room {room.id}: "
                    f"{validated.start_time.isoformat()}–{validated.end_time.isoformat()} "
                    f"overlaps {[b.id for b in conflicts]}"
                )
                raise ConflictError("This time slot is already booked")

            booking = self.store.create_booking_record({
                "room_id": room.id,
                "user_id": user_id,
                "user_label": user_label,
                "room_name": room.name,
                "room_location": room.location,
                "start_time": validated.start_time,
                "end_time": validated.end_time,
                "note": validated.note,
            })

        self.invalidator.invalidate_booking(booking)
        self._emit("booking_created", booking)
        logger.info(f"Booking {booking.id} created by {user_id} in room {room.id}")
        return booking

    def update_status(self, booking_id: str, status: BookingStatus, user_id: str) -> Booking:
        """
        Move a booking to ``status``.

        Re-requesting the current status is a no-op that returns the booking
        unchanged. A Cancelled booking cannot be confirmed again.

        Raises:
            NotFoundError: booking does not exist
            AuthorizationError: caller does not own the booking
            ConflictError: transition out of Cancelled
        """
        status = BookingStatus(status)
        existing = self.store.fetch_booking(booking_id)
        if existing is None:
            raise NotFoundError("Booking not found")

        if existing.user_id != user_id:
            raise AuthorizationError("You can only cancel your own bookings")

        if existing.status == status:
            logger.info(f"Booking {booking_id} already {status.value}, nothing to do")
            return existing

        if existing.status == BookingStatus.CANCELLED:
            raise ConflictError("Cancelled bookings cannot be changed")

        booking = self.store.update_booking_record(booking_id, {"status": status})
        if booking is None:
            raise NotFoundError("Booking not found")

        self.invalidator.invalidate_booking(booking)
        if status == BookingStatus.CANCELLED:
            self._emit("booking_cancelled", booking)
        logger.info(f"Booking {booking_id} set to {status.value} by {user_id}")
        return booking

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, booking_id: str) -> Booking:
        def load() -> Booking:
            booking = self.store.fetch_booking(booking_id)
            if booking is None:
                raise NotFoundError("Booking not found")
            return booking

        return self._cached(booking_tag(booking_id), load, _BOOKING)

    def list_all(self) -> list[Booking]:
        return self._cached(
            CacheTags.BOOKINGS_ALL,
            lambda: self.store.fetch_bookings(exclude_cancelled=False),
            _BOOKINGS,
        )

    def list_upcoming(self) -> list[Booking]:
        """Active bookings from now until the configured look-ahead."""
        now = self._now()
        if self.config.upcoming_meetings_hours is not None:
            until = now + timedelta(hours=self.config.upcoming_meetings_hours)
        else:
            _, until = day_bounds(now.astimezone(self.config.tz).date(), self.config.tz)

        return self._cached(
            CacheTags.BOOKINGS_UPCOMING,
            lambda: self.store.fetch_bookings(start=now, end=until),
            _BOOKINGS,
            ttl=UPCOMING_CACHE_TTL,
        )

    def list_for_user(self, user_id: str) -> list[Booking]:
        now = self._now()
        return self._cached(
            user_bookings_tag(user_id),
            lambda: self.store.fetch_bookings(user_id=user_id, start=now),
            _BOOKINGS,
        )

    def list_for_room(self, room_id: str) -> list[Booking]:
        now = self._now()
        return self._cached(
            room_bookings_tag(room_id),
            lambda: self.store.fetch_bookings(room_id=room_id, start=now),
            _BOOKINGS,
        )

    def list_for_day(self, room_id: str, day: date) -> list[Booking]:
        """Active bookings of ``room_id`` overlapping the local day."""
        start, end = day_bounds(day, self.config.tz)
        return self._cached(
            bookings_for_date_tag(room_id, day, self.config.tz),
            lambda: self.store.fetch_bookings(room_id=room_id, start=start, end=end),
            _BOOKINGS,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _cached(self, tag: str, loader, adapter: TypeAdapter, ttl: int | None = None):
        if self.cache is None:
            return loader()
        return self.cache.get_or_load(tag, loader, adapter, ttl=ttl or self.bookings_cache_ttl)

    def _emit(self, event_type: str, booking: Booking) -> None:
        if self.redis is not None:
            emit_booking_event(self.redis, event_type, booking)
