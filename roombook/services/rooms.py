"""Cached room reads. Rooms are edited in the record store, never here."""

from pydantic import TypeAdapter

from ..domain import Room
from ..errors import NotFoundError
from .cache.keys import CacheTags, room_tag
from .cache.store import TaggedCache
from .store import RecordStore

_ROOM = TypeAdapter(Room)
_ROOMS = TypeAdapter(list[Room])


class RoomQueries:

    def __init__(self, store: RecordStore, cache: TaggedCache | None = None, ttl: int = 3600):
        self.store = store
        self.cache = cache
        self.ttl = ttl

    def get(self, room_id: str) -> Room:
        def load() -> Room:
            room = self.store.fetch_room(room_id)
            if room is None:
                raise NotFoundError("Room not found")
            return room

        if self.cache is None:
            return load()
        return self.cache.get_or_load(room_tag(room_id), load, _ROOM, ttl=self.ttl)

    def list(self) -> list[Room]:
        if self.cache is None:
            return self.store.fetch_rooms()
        return self.cache.get_or_load(CacheTags.ROOMS_ALL, self.store.fetch_rooms, _ROOMS, ttl=self.ttl)
