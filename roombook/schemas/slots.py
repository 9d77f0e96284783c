# roombook/schemas/slots.py
"""
Pydantic schemas for the availability API.
"""

from datetime import datetime

from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..domain import TimeSlot


class SlotRead(BaseModel):
    """One 30-minute slot as rendered to clients."""
    start_time: datetime
    end_time: datetime
    label: str  # "HH:MM"
    available: bool
    occupied: bool
    past: bool

    model_config = ConfigDict(
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "SlotRead":
        return cls(
            start_time=slot.start_time,
            end_time=slot.end_time,
            label=slot.label,
            available=slot.is_available,
            occupied=slot.is_booked,
            past=slot.is_past,
        )
