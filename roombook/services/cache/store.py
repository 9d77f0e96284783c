"""
Redis read-through cache addressed by tag.

Key format: cache:tag:{tag}
Value: JSON produced by a pydantic TypeAdapter for the cached type.

Redis being down never fails a read: the loader result is returned
uncached and the error is logged.
"""

import logging
from typing import Callable, Iterable, TypeVar

from pydantic import TypeAdapter
from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaggedCache:
    """Redis storage wrapper keyed by cache tag."""

    KEY_PREFIX = "cache:tag"

    def __init__(self, redis: Redis, default_ttl: int = 3600):
        self.redis = redis
        self.default_ttl = default_ttl

    def _key(self, tag: str) -> str:
        return f"{self.KEY_PREFIX}:{tag}"

    # ── Read ─────────────────────────────────────────────────────────────

    def get_or_load(
        self,
        tag: str,
        loader: Callable[[], T],
        adapter: TypeAdapter,
        ttl: int | None = None,
    ) -> T:
        """Return the cached value for ``tag`` or load, store and return it."""
        key = self._key(tag)
        try:
            raw = self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {tag}: {e}")
            return loader()

        if raw is not None:
            try:
                return adapter.validate_json(raw)
            except ValueError:
                logger.warning(f"Discarding undecodable cache entry {tag}")

        value = loader()
        try:
            self.redis.set(key, adapter.dump_json(value), ex=ttl or self.default_ttl)
        except RedisError as e:
            logger.warning(f"Cache write failed for {tag}: {e}")
        return value

    def peek(self, tag: str, adapter: TypeAdapter):
        """Cached value for ``tag`` or None; never loads and never raises."""
        try:
            raw = self.redis.get(self._key(tag))
        except RedisError as e:
            logger.warning(f"Cache read failed for {tag}: {e}")
            return None
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValueError:
            return None

    # ── Delete ───────────────────────────────────────────────────────────

    def invalidate(self, tags: Iterable[str]) -> int:
        """
        Drop cached entries for ``tags``.

        Returns:
            Number of deleted keys. Redis errors propagate to the caller.
        """
        keys = [self._key(t) for t in sorted(set(tags))]
        if not keys:
            return 0
        return self.redis.delete(*keys)
