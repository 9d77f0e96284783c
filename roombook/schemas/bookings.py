# roombook/schemas/bookings.py

from datetime import datetime
from typing import Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..domain import BookingStatus
from ..services.slots.config import ensure_aware
from ..services.validation import NOTE_MAX_LENGTH, ROOM_ID_PATTERN


class BookingCreate(BaseModel):
    room_id: str = Field(min_length=1, pattern=ROOM_ID_PATTERN)
    start_time: datetime
    end_time: datetime
    note: str = Field("", max_length=NOTE_MAX_LENGTH)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @field_validator("note", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingRead(BaseModel):
    id: str
    user_label: str = ""
    user_id: str = Field(serialization_alias="user")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    note: str = ""
    room_id: str = Field(serialization_alias="room")
    room_name: Optional[str] = None
    room_location: Optional[str] = None
    status: BookingStatus

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )
