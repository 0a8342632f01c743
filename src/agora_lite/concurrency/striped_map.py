"""Striped hash map with an atomic compute-if-absent.

Keys are spread over N independent dicts, each behind its own
ReadWriteLock, with ``stripe = hash(key) & (N - 1)``. Two threads only
contend when their keys land on the same stripe, so unrelated rate-limit
keys (one per client IP, one per user) do not serialise on a global lock.

``compute_if_absent`` holds the stripe's write lock across the
check-and-insert, which is what guarantees that concurrent first use of a
key produces exactly one value for it.
"""
from __future__ import annotations

from typing import Callable, Generic, Hashable, TypeVar

from agora_lite.concurrency.rwlock import ReadWriteLock

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class StripedMap(Generic[K, V]):
    """Thread-safe mapping partitioned over ``num_stripes`` locks.

    Args:
        num_stripes: Number of lock stripes (power of two, default 16).
    """

    def __init__(self, num_stripes: int = 16) -> None:
        if num_stripes <= 0 or num_stripes & (num_stripes - 1):
            raise ValueError(f"num_stripes must be a positive power of 2, got {num_stripes}")
        self._mask = num_stripes - 1
        self._stripes: list[dict[K, V]] = [{} for _ in range(num_stripes)]
        self._locks = [ReadWriteLock() for _ in range(num_stripes)]

    @property
    def num_stripes(self) -> int:
        return len(self._stripes)

    def get(self, key: K) -> V | None:
        idx = self._index(key)
        with self._locks[idx].read():
            return self._stripes[idx].get(key)

    def compute_if_absent(self, key: K, factory: Callable[[K], V]) -> V:
        """Return the value for *key*, creating it with *factory* if missing.

        Fast path is a read-locked lookup. On a miss the write lock is
        taken and the lookup repeated before calling *factory*, so the
        factory runs at most once per key even under a race.
        """
        idx = self._index(key)
        stripe = self._stripes[idx]
        with self._locks[idx].read():
            value = stripe.get(key)
        if value is not None:
            return value
        with self._locks[idx].write():
            value = stripe.get(key)
            if value is None:
                value = factory(key)
                stripe[key] = value
            return value

    def delete(self, key: K) -> bool:
        """Remove *key*. Returns True if it was present."""
        idx = self._index(key)
        with self._locks[idx].write():
            return self._stripes[idx].pop(key, None) is not None

    def clear(self) -> None:
        for idx, stripe in enumerate(self._stripes):
            with self._locks[idx].write():
                stripe.clear()

    def size(self) -> int:
        """Entry count summed stripe by stripe (not a point-in-time total)."""
        total = 0
        for idx, stripe in enumerate(self._stripes):
            with self._locks[idx].read():
                total += len(stripe)
        return total

    def keys(self) -> list[K]:
        """Snapshot of all keys for tests and monitoring.

        Stripes are read one at a time, so the list is not atomic across
        the whole map under concurrent writes.
        """
        result: list[K] = []
        for idx, stripe in enumerate(self._stripes):
            with self._locks[idx].read():
                result.extend(stripe)
        return result

    def __contains__(self, key: object) -> bool:
        idx = self._index(key)  # type: ignore[arg-type]
        with self._locks[idx].read():
            return key in self._stripes[idx]

    def __len__(self) -> int:
        return self.size()

    def _index(self, key: K) -> int:
        return hash(key) & self._mask
