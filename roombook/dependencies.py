# FastAPI dependency wiring for the engine services.

from fastapi import Depends
from redis import Redis
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import get_redis
from .services.bookings import BookingService
from .services.cache.invalidator import CacheInvalidator
from .services.cache.store import TaggedCache
from .services.rooms import RoomQueries
from .services.slots.config import BookingConfig, get_booking_config
from .services.store import RecordStore
from .services.webhook_payloads import WebhookPayloadClient


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_cache(redis: Redis = Depends(get_redis)) -> TaggedCache:
    return TaggedCache(redis, default_ttl=settings.bookings_cache_time)


def get_config() -> BookingConfig:
    return get_booking_config()


def get_invalidator(
    store: RecordStore = Depends(get_store),
    cache: TaggedCache = Depends(get_cache),
    config: BookingConfig = Depends(get_config),
) -> CacheInvalidator:
    return CacheInvalidator(
        cache,
        store,
        config,
        rooms_table_id=settings.rooms_table_id,
        bookings_table_id=settings.bookings_table_id,
    )


def get_booking_service(
    store: RecordStore = Depends(get_store),
    invalidator: CacheInvalidator = Depends(get_invalidator),
    cache: TaggedCache = Depends(get_cache),
    redis: Redis = Depends(get_redis),
    config: BookingConfig = Depends(get_config),
) -> BookingService:
    return BookingService(
        store,
        invalidator,
        cache=cache,
        redis=redis,
        config=config,
        bookings_cache_ttl=settings.bookings_cache_time,
    )


def get_room_queries(
    store: RecordStore = Depends(get_store),
    cache: TaggedCache = Depends(get_cache),
) -> RoomQueries:
    return RoomQueries(store, cache, ttl=settings.room_cache_time)


def get_payload_client() -> WebhookPayloadClient:
    return WebhookPayloadClient(settings.record_store_api_url, settings.record_store_api_key)
