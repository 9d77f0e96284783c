# roombook/services/slots/__init__.py
"""
Slots and conflicts.

Slot grid: pure function of room hours, day and the day's bookings.
Conflicts: pure overlap test against a fresh read of the room's bookings.
"""

from .config import BookingConfig, get_booking_config
from .generator import generate_slots
from .conflicts import find_conflicts, has_conflict

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "generate_slots",
    "find_conflicts",
    "has_conflict",
]
