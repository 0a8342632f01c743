"""Shared fixtures for security tests."""
from __future__ import annotations

import pytest

from agora_lite.security.ratelimit import TokenBucketRateLimiter


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> TokenBucketRateLimiter:
    """5 tokens, one back every 200 ms."""
    return TokenBucketRateLimiter(capacity=5, refill_interval_ms=200, clock=clock)
