# roombook/schemas/rooms.py

from typing import Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..domain import RoomStatus


class RoomRead(BaseModel):
    id: str
    name: str
    capacity: int = 0
    notes: Optional[str] = None
    location: Optional[str] = None
    open_seconds: int
    close_seconds: int
    max_meeting_hours: Optional[float] = None
    status: RoomStatus
    tags: list[str] = []
    image_url: Optional[str] = None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )
