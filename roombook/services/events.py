"""
roombook/services/events.py

Event emitter: pushes booking events to a Redis queue for the notifier
(chat notifications, calendar sync) to consume.

Queue:
- events:p2p: instant delivery to the booking owner
"""

import json
import time
import logging

from redis import Redis

from ..domain import Booking

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


def emit_event(redis: Redis, event_type: str, payload: dict) -> None:
    """
    Push an event onto ``events:p2p``.

    Never raises: a lost notification must not fail the booking write.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(EVENTS_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def emit_booking_event(redis: Redis, event_type: str, booking: Booking) -> None:
    emit_event(redis, event_type, {
        "booking_id": booking.id,
        "user_id": booking.user_id,
        "user_label": booking.user_label,
        "room_id": booking.room_id,
        "room_name": booking.room_name,
        "start_time": booking.start_time.isoformat() if booking.start_time else None,
        "end_time": booking.end_time.isoformat() if booking.end_time else None,
        "status": booking.status.value,
    })
