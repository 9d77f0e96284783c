"""Tests for the fixed-window rate limiter."""

import pytest
from starlette.requests import Request

from roombook.middleware.rate_limit import FixedWindowRateLimiter, client_ip


class Clock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(name="clock")
def clock_fixture() -> Clock:
    return Clock(1_000.0)


@pytest.fixture(name="limiter")
def limiter_fixture(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(clock=clock)


def test_allows_up_to_limit(limiter):
    results = [limiter.allow("booking_U1_1.2.3.4", 10, 60_000) for _ in range(11)]

    assert results == [True] * 10 + [False]


def test_window_boundary(limiter, clock):
    for _ in range(3):
        limiter.allow("k", 3, 60_000)

    # reset_at is inclusive: the window is still open at exactly reset time
    clock.now += 60_000
    assert limiter.allow("k", 3, 60_000) is False

    clock.now += 1
    assert limiter.allow("k", 3, 60_000) is True


def test_keys_are_independent(limiter):
    assert limiter.allow("booking_U1_ip", 1, 60_000)
    assert not limiter.allow("booking_U1_ip", 1, 60_000)

    assert limiter.allow("update_U1_ip", 1, 60_000)
    assert limiter.allow("booking_U2_ip", 1, 60_000)


def test_expired_counters_are_swept(limiter, clock):
    limiter.allow("a", 5, 1_000)
    limiter.allow("b", 5, 1_000)
    assert len(limiter) == 2

    clock.now += 61_000
    limiter.allow("c", 5, 1_000)

    assert len(limiter) == 1


def test_key_cap_evicts_oldest_window(clock):
    limiter = FixedWindowRateLimiter(max_keys=2, clock=clock)

    limiter.allow("a", 1, 60_000)
    clock.now += 10
    limiter.allow("b", 1, 60_000)
    clock.now += 10
    limiter.allow("c", 1, 60_000)

    assert len(limiter) == 2
    # "a" was evicted, so it starts a fresh window
    assert limiter.allow("a", 1, 60_000)


def test_existing_key_does_not_trigger_eviction(clock):
    limiter = FixedWindowRateLimiter(max_keys=2, clock=clock)
    limiter.allow("a", 5, 60_000)
    limiter.allow("b", 5, 60_000)

    limiter.allow("b", 5, 60_000)

    assert len(limiter) == 2


def test_reset_clears_counters(limiter):
    limiter.allow("k", 1, 60_000)
    limiter.reset()

    assert len(limiter) == 0
    assert limiter.allow("k", 1, 60_000)


def _request(headers: dict, host: str = "10.0.0.1") -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/bookings",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (host, 1234),
    })


def test_client_ip_prefers_forwarded_for():
    assert client_ip(_request({"X-Forwarded-For": "1.1.1.1, 2.2.2.2"})) == "1.1.1.1"
    assert client_ip(_request({"X-Real-IP": "3.3.3.3"})) == "3.3.3.3"
    assert client_ip(_request({})) == "10.0.0.1"
