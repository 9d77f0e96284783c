"""
Cache invalidation for bookings and rooms.

Triggers:
✓ Booking created / status changed through the API → booking tags
✓ Webhook: booking changed or destroyed → booking tags of the fresh read
  (else payload fields), the previous values and the cached record; a
  stub with the coarse "bookings-all" tags when none is left
✓ Webhook: room changed or destroyed → room tags + tags of every active
  booking of that room (room status drives slot rendering)

Failure policy: invalidation never raises into the caller. A failed
cascade read degrades to the coarse "bookings-all" tag; over-invalidating
is always safe.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import TypeAdapter

from ...domain import Booking, BookingStatus
from ..slots.config import BookingConfig, from_storage, get_booking_config, local_midnight
from ..store import RecordStore
from .keys import CacheTags, booking_tag, keys_for_booking, keys_for_room, room_bookings_tag
from .store import TaggedCache

logger = logging.getLogger(__name__)

_BOOKING = TypeAdapter(Booking)


def select_payloads(payloads: list, latest_only: bool = True) -> tuple[list, int]:
    """
    Pick the payloads to process from a delivery queue.

    With ``latest_only`` only the newest payload is kept; older ones are
    superseded by it (invalidation is idempotent).

    Returns:
        (payloads to process, number superseded)
    """
    if not payloads:
        return [], 0
    if not latest_only:
        return list(payloads), 0

    superseded = len(payloads) - 1
    if superseded:
        logger.warning(f"Webhook: {superseded} older payload(s) superseded by the latest one")
    return [payloads[-1]], superseded


def booking_from_fields(booking_id: str, fields: dict[str, Any]) -> Booking | None:
    """Rebuild a booking from webhook cell values; None if unusable."""
    room = fields.get("room")
    if isinstance(room, list):
        room = room[0] if room else None
    user = fields.get("user")
    if not room and not user:
        return None

    try:
        start = from_storage(fields.get("startTime"))
        end = from_storage(fields.get("endTime"))
    except (TypeError, ValueError):
        start = end = None

    try:
        status = BookingStatus(fields.get("status") or BookingStatus.CONFIRMED.value)
    except ValueError:
        status = BookingStatus.CANCELLED

    return Booking(
        id=booking_id,
        user_id=user or "",
        room_id=room or "",
        start_time=start,
        end_time=end,
        status=status,
    )


class CacheInvalidator:
    """Computes and drops the cache tags affected by a change."""

    def __init__(
        self,
        cache: TaggedCache,
        store: RecordStore,
        config: BookingConfig | None = None,
        rooms_table_id: str = "rooms",
        bookings_table_id: str = "bookings",
        now_fn: Callable[[], datetime] | None = None,
    ):
        self.cache = cache
        self.store = store
        self.config = config or get_booking_config()
        self.rooms_table_id = rooms_table_id
        self.bookings_table_id = bookings_table_id
        self._now = now_fn or (lambda: datetime.now(timezone.utc))

    # ── Tag computation ──────────────────────────────────────────────────

    def booking_keys(self, booking: Booking) -> set[str]:
        try:
            return keys_for_booking(booking, self.config.tz)
        except Exception:
            logger.exception(f"Could not compute cache keys for booking {booking.id}")
            return {CacheTags.BOOKINGS_ALL, CacheTags.BOOKINGS_UPCOMING}

    def room_keys(self, room_id: str) -> set[str]:
        """Room tags plus the tags of the room's active bookings from today on."""
        keys = keys_for_room(room_id)
        keys.add(room_bookings_tag(room_id))

        tz = self.config.tz
        start_of_today = local_midnight(self._now().astimezone(tz).date(), tz)
        try:
            bookings = self.store.fetch_bookings(room_id=room_id, start=start_of_today)
        except Exception as e:
            logger.warning(f"Room {room_id}: bookings fetch failed ({e}), falling back to {CacheTags.BOOKINGS_ALL}")
            keys.add(CacheTags.BOOKINGS_ALL)
            return keys

        for booking in bookings:
            keys |= self.booking_keys(booking)
        return keys

    def changed_booking_keys(
        self,
        booking_id: str,
        fields: dict[str, Any] | None = None,
        previous: dict[str, Any] | None = None,
    ) -> set[str]:
        """
        Tags of a changed or destroyed booking, before and after the change.

        Sources, all combined: the fresh record (else the payload's current
        values), the payload's previous values, and the cached
        ``booking-by-{id}`` entry, which still describes the old state of a
        destroyed booking.
        """
        versions: list[Booking] = []

        fresh = None
        try:
            fresh = self.store.fetch_booking(booking_id)
        except Exception as e:
            logger.warning(f"Booking {booking_id}: fetch failed ({e})")
        if fresh is None and fields:
            fresh = booking_from_fields(booking_id, fields)
        if fresh is not None:
            versions.append(fresh)

        if previous:
            before = booking_from_fields(booking_id, previous)
            if before is not None:
                versions.append(before)

        cached = self.cache.peek(booking_tag(booking_id), _BOOKING)
        if cached is not None:
            versions.append(cached)

        if not versions:
            # stub has no user/room/date, so only the coarse tags apply
            logger.warning(f"Booking {booking_id}: no record left, invalidating coarse tags only")
            versions.append(Booking.stub(booking_id))

        keys: set[str] = set()
        for booking in versions:
            keys |= self.booking_keys(booking)
        return keys

    # ── Invalidation ─────────────────────────────────────────────────────

    def invalidate_keys(self, keys: set[str]) -> int:
        try:
            deleted = self.cache.invalidate(keys)
        except Exception:
            logger.exception(f"Cache invalidation failed for {len(keys)} tag(s)")
            return 0
        logger.debug(f"Invalidated {len(keys)} tag(s), {deleted} cached entr(ies) dropped")
        return deleted

    def invalidate_booking(self, booking: Booking) -> set[str]:
        keys = self.booking_keys(booking)
        self.invalidate_keys(keys)
        return keys

    def invalidate_room(self, room_id: str) -> set[str]:
        keys = self.room_keys(room_id)
        self.invalidate_keys(keys)
        return keys

    # ── Webhook ──────────────────────────────────────────────────────────

    def process_webhook_payload(self, payload) -> dict:
        """
        Invalidate everything touched by one webhook payload.

        Records are handled one after another; unknown tables are skipped.

        Returns:
            {"tables_affected": int, "keys": set[str]}
        """
        keys: set[str] = set()
        tables = payload.changed_tables_by_id or {}

        for table_id, changes in tables.items():
            changed = changes.changed_records_by_id or {}
            destroyed = changes.destroyed_record_ids or []

            if table_id == self.rooms_table_id:
                logger.info(
                    f"Webhook: rooms changed={list(changed)} destroyed={destroyed}"
                )
                for room_id in [*changed, *destroyed]:
                    keys |= self.room_keys(room_id)

            elif table_id == self.bookings_table_id:
                logger.info(
                    f"Webhook: bookings changed={list(changed)} destroyed={destroyed}"
                )
                for booking_id, change in changed.items():
                    fields = change.current.cell_values_by_field_id if change.current else None
                    previous = change.previous.cell_values_by_field_id if change.previous else None
                    keys |= self.changed_booking_keys(booking_id, fields, previous)
                for booking_id in destroyed:
                    keys |= self.changed_booking_keys(booking_id)

            else:
                logger.info(f"Webhook: ignoring changes for unknown table {table_id}")

        if keys:
            self.invalidate_keys(keys)

        return {"tables_affected": len(tables), "keys": keys}
