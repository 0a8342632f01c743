"""Per-key token-bucket rate limiting.

Each key (client IP, user id) owns a bucket holding up to ``capacity``
tokens. A request spends one token; an empty bucket rejects. Tokens come
back one per ``refill_interval_ms``, so a client can burst up to
``capacity`` requests and is then held to one request per interval.

Refill is computed lazily on access:

    added = floor((now - last_refill) / refill_interval_ms)

and ``last_refill`` only moves when ``added > 0``. Moving it on every
call would let a client hammering faster than the interval reset the
clock each time and never earn a token back.

Buckets are created on first use through StripedMap.compute_if_absent
(exactly one bucket per key even when the first requests race) and each
bucket serialises its own refill/consume with a private lock, so
unrelated keys never contend.

A per-call BucketConfig only shapes the bucket it creates, so the first
use of a key decides its limits until reset().
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from agora_lite.concurrency.striped_map import StripedMap
from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.domain.types import Millis, RateKey

log = logging.getLogger(__name__)

DEFAULT_BUCKET_SIZE = 60
DEFAULT_REFILL_INTERVAL_MS = 1000


def _monotonic_ms() -> Millis:
    return time.monotonic() * 1000.0


@dataclass(frozen=True, slots=True)
class BucketConfig:
    """Bucket shape shared by every key of one limiter."""
    capacity: int = DEFAULT_BUCKET_SIZE
    refill_interval_ms: float = DEFAULT_REFILL_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise InvalidConfiguration(f"capacity must be positive, got {self.capacity}")
        if not self.refill_interval_ms > 0:
            raise InvalidConfiguration(
                f"refill_interval_ms must be positive, got {self.refill_interval_ms}"
            )


class TokenBucket:
    """A single bucket. Starts full."""

    __slots__ = ("_config", "_available", "_last_refill", "_clock", "_lock")

    def __init__(self, config: BucketConfig, clock: Callable[[], Millis]) -> None:
        self._config = config
        self._available = config.capacity
        self._clock = clock
        self._last_refill = clock()
        self._lock = threading.Lock()

    @property
    def config(self) -> BucketConfig:
        return self._config

    def _pending(self, now: Millis) -> int:
        elapsed = now - self._last_refill
        if elapsed <= 0:
            return 0
        return int(elapsed // self._config.refill_interval_ms)

    def _refill(self) -> None:
        now = self._clock()
        added = self._pending(now)
        if added > 0:
            self._available = min(self._config.capacity, self._available + added)
            self._last_refill = now

    def try_consume(self) -> bool:
        with self._lock:
            self._refill()
            if self._available > 0:
                self._available -= 1
                return True
            return False

    def available(self) -> int:
        """Tokens a call right now would see, without touching state."""
        with self._lock:
            return min(
                self._config.capacity,
                self._available + self._pending(self._clock()),
            )


class TokenBucketRateLimiter:
    """Token-bucket limiter keyed by arbitrary strings.

    Args:
        capacity: Maximum burst size per key (default 60).
        refill_interval_ms: Milliseconds per regenerated token (default 1000).
        clock: Zero-argument callable returning milliseconds. Defaults to
            ``time.monotonic()`` scaled to ms; tests pass a fake.
        num_stripes: Lock stripes for the bucket map (power of two).

    Usage:
        limiter = TokenBucketRateLimiter(capacity=5, refill_interval_ms=200)
        if not limiter.try_acquire(client_ip):
            return too_many_requests()
    """

    def __init__(
        self,
        capacity: int = DEFAULT_BUCKET_SIZE,
        refill_interval_ms: float = DEFAULT_REFILL_INTERVAL_MS,
        *,
        clock: Callable[[], Millis] | None = None,
        num_stripes: int = 16,
    ) -> None:
        self._config = BucketConfig(capacity, refill_interval_ms)
        self._clock = clock or _monotonic_ms
        self._buckets: StripedMap[RateKey, TokenBucket] = StripedMap(num_stripes)

    @property
    def config(self) -> BucketConfig:
        return self._config

    def try_acquire(self, key: RateKey, config: BucketConfig | None = None) -> bool:
        """Spend one token for *key*. False means the caller is throttled.

        *config* overrides the limiter-wide bucket shape for this key,
        e.g. a tighter bucket for login attempts. It only applies when
        the call creates the bucket; later calls reuse the existing one
        whatever config they pass.
        """
        shape = self._config if config is None else config

        def new_bucket(k: RateKey) -> TokenBucket:
            log.debug(
                "creating token bucket for %r (%d per %.0f ms)",
                k, shape.capacity, shape.refill_interval_ms,
            )
            return TokenBucket(shape, self._clock)

        bucket = self._buckets.compute_if_absent(key, new_bucket)
        allowed = bucket.try_consume()
        if not allowed:
            log.debug("rate limited %r", key)
        return allowed

    def remaining(self, key: RateKey) -> int:
        """Tokens currently available to *key*; full capacity if unseen."""
        bucket = self._buckets.get(key)
        if bucket is None:
            return self._config.capacity
        return bucket.available()

    def reset(self, key: RateKey) -> bool:
        """Forget *key*'s bucket. Returns True if one existed."""
        return self._buckets.delete(key)

    def clear(self) -> None:
        self._buckets.clear()

    def bucket_count(self) -> int:
        return self._buckets.size()
