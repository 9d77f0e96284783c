"""Shared fixtures: in-memory database, Redis double, services, API client."""

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from roombook.database import init_db
from roombook.models.tables import Rooms as DBRooms
from roombook.services.bookings import BookingService, RoomLocks
from roombook.services.cache.invalidator import CacheInvalidator
from roombook.services.cache.store import TaggedCache
from roombook.services.slots.config import BookingConfig
from roombook.services.store import RecordStore

# Friday 2024-03-15, 07:00 UTC: before any room opens
DAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 7, 0, tzinfo=timezone.utc)

OWNER = "U0000OWNER"
OTHER = "U0000OTHER"


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """UTC datetime on ``day``; hour 24 means the next midnight."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc) + timedelta(hours=hour, minutes=minute)


# =============================================================================
# Redis double
# =============================================================================


class FakeRedis:
    """In-memory stand-in for the handful of commands the engine uses."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = defaultdict(list)
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    def get(self, key):
        self._check()
        return self.values.get(key)

    def set(self, key, value, ex=None):
        self._check()
        self.values[key] = value.decode() if isinstance(value, bytes) else value
        return True

    def delete(self, *keys):
        self._check()
        return sum(1 for k in keys if self.values.pop(k, None) is not None)

    def rpush(self, key, *values):
        self._check()
        self.lists[key].extend(values)
        return len(self.lists[key])

    def ping(self):
        self._check()
        return True


@pytest.fixture(name="fake_redis")
def fake_redis_fixture() -> FakeRedis:
    return FakeRedis()


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="db")
def db_fixture(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


def add_room(db, room_id: str = "room-a", **fields):
    values = {
        "name": "Board Room",
        "capacity": 8,
        "location": "Floor 2",
        "start_time": 28800,
        "end_time": 64800,
    }
    values.update(fields)
    db.add(DBRooms(id=room_id, **values))
    db.commit()


@pytest.fixture(name="room")
def room_fixture(db, store):
    add_room(db)
    return store.fetch_room("room-a")


# =============================================================================
# Services
# =============================================================================


@pytest.fixture(name="config")
def config_fixture() -> BookingConfig:
    return BookingConfig()


@pytest.fixture(name="store")
def store_fixture(db) -> RecordStore:
    return RecordStore(db)


@pytest.fixture(name="cache")
def cache_fixture(fake_redis) -> TaggedCache:
    return TaggedCache(fake_redis)


@pytest.fixture(name="invalidator")
def invalidator_fixture(cache, store, config) -> CacheInvalidator:
    return CacheInvalidator(cache, store, config, now_fn=lambda: NOW)


@pytest.fixture(name="service")
def service_fixture(store, invalidator, cache, fake_redis, config) -> BookingService:
    return BookingService(
        store,
        invalidator,
        cache=cache,
        redis=fake_redis,
        config=config,
        locks=RoomLocks(),
        now_fn=lambda: NOW,
    )


# =============================================================================
# API
# =============================================================================


@pytest.fixture(name="client")
def client_fixture(db, fake_redis, config):
    from roombook.database import get_db
    from roombook.dependencies import get_config
    from roombook.main import app
    from roombook.middleware.rate_limit import limiter
    from roombook.redis_client import get_redis

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_config] = lambda: config
    limiter.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()
    limiter.reset()


def auth_headers(user_id: str = OWNER, name: str = "Ada") -> dict:
    return {"X-User-Id": user_id, "X-User-Name": name}
