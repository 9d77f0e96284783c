# roombook/middleware/rate_limit.py
"""
In-process rate limiting for booking writes.

Limits (per user + client IP, fixed window):
- booking create: BOOKING_CREATE_LIMIT per RATE_LIMIT_WINDOW_SECONDS
- booking update: BOOKING_UPDATE_LIMIT per RATE_LIMIT_WINDOW_SECONDS

Fixed windows are approximate; they guard against abuse, not correctness.
State is per process: several workers each enforce their own limit.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from fastapi import Depends, Request

from ..config import settings
from ..errors import RateLimitError
from .auth import Identity, get_current_user

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_MS = 60_000


@dataclass
class RateLimitCounter:
    count: int
    reset_at: float  # ms


class FixedWindowRateLimiter:
    """
    Per-key request counter with a fixed reset time.

    Expired counters are swept at most once per SWEEP_INTERVAL_MS; when the
    map still holds ``max_keys`` entries the counters closest to reset are
    dropped first.
    """

    def __init__(
        self,
        max_keys: int = 10000,
        clock: Callable[[], float] | None = None,
    ):
        self.max_keys = max_keys
        self._clock = clock or (lambda: time.time() * 1000)
        self._counters: dict[str, RateLimitCounter] = {}
        self._lock = Lock()
        self._last_sweep = 0.0

    def allow(self, key: str, max_requests: int, window_ms: float) -> bool:
        """Count one request for ``key``; False once the window's limit is passed."""
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)

            counter = self._counters.get(key)
            if counter is None:
                self._make_room()
            if counter is None or now > counter.reset_at:
                self._counters[key] = RateLimitCounter(count=1, reset_at=now + window_ms)
                return True

            counter.count += 1
            return counter.count <= max_requests

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def __len__(self) -> int:
        return len(self._counters)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= SWEEP_INTERVAL_MS:
            expired = [k for k, c in self._counters.items() if now > c.reset_at]
            for k in expired:
                del self._counters[k]
            if expired:
                logger.debug(f"Swept {len(expired)} expired rate limit counters")
            self._last_sweep = now

    def _make_room(self) -> None:
        if len(self._counters) >= self.max_keys:
            overflow = len(self._counters) - self.max_keys + 1
            oldest = sorted(self._counters, key=lambda k: self._counters[k].reset_at)[:overflow]
            for k in oldest:
                del self._counters[k]
            logger.warning(f"Rate limit map full, evicted {overflow} counter(s)")


limiter = FixedWindowRateLimiter(max_keys=settings.rate_limit_max_keys)


def get_limiter() -> FixedWindowRateLimiter:
    return limiter


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return (
        request.headers.get("X-Real-IP")
        or (request.client.host if request.client else None)
        or "unknown"
    )


def rate_limit(action: str, max_requests: int, window_seconds: int | None = None):
    """
    FastAPI dependency factory: ``Depends(rate_limit("booking", 10))``.

    Key: ``{action}_{userId}_{clientIp}``.
    """
    window_ms = (window_seconds or settings.rate_limit_window_seconds) * 1000

    def dependency(
        request: Request,
        user: Identity = Depends(get_current_user),
        limiter: FixedWindowRateLimiter = Depends(get_limiter),
    ) -> Identity:
        key = f"{action}_{user.user_id}_{client_ip(request)}"
        if not limiter.allow(key, max_requests, window_ms):
            logger.warning(f"Rate limit exceeded: {key}")
            raise RateLimitError()
        return user

    return dependency
