"""Bloom filter for "have we seen this key before?" checks.

Typical callers: username availability ("is this name probably taken?"),
duplicate forum post detection, spam fingerprints. A miss is a definite
answer and lets the caller skip a database round trip. A hit only means
"maybe": the caller must confirm against the source of truth.

Sizing follows the classic formulas for n expected items and target
false-positive rate p0:

    m = -n * ln(p0) / (ln 2)^2        bits
    k = round((m / n) * ln 2)         hash functions

and the false-positive probability after n inserts is roughly
(1 - e^(-kn/m))^k. The k bit positions come from double hashing,
h_i(x) = h1(x) + i * h2(x) mod m (Kirsch & Mitzenmacher, 2006), with h1
and h2 taken from one SHA-256 digest.

Inserts take the write side of a ReadWriteLock. ``word |= bit`` is a
read-modify-write on the array, so two unguarded concurrent inserts
touching the same word could lose a bit, and a lost bit is a false
negative.
"""
from __future__ import annotations

import array
import hashlib
import logging
import math

from agora_lite.concurrency.rwlock import ReadWriteLock
from agora_lite.domain.errors import InvalidConfiguration

log = logging.getLogger(__name__)

_LN2 = math.log(2)


def optimal_size(expected: int, fp_rate: float) -> int:
    """Bit array size m for *expected* items at target *fp_rate*."""
    if expected <= 0:
        raise InvalidConfiguration(f"expected_elements must be positive, got {expected}")
    if not (0.0 < fp_rate < 1.0):
        raise InvalidConfiguration(f"fp_rate must be in (0, 1), got {fp_rate}")
    return int(math.ceil(-(expected * math.log(fp_rate)) / (_LN2 ** 2)))


def optimal_hashes(m: int, expected: int) -> int:
    """Hash function count k = (m / n) * ln 2, at least 1."""
    return max(1, int(round((m / expected) * _LN2)))


def _hash_pair(item: str) -> tuple[int, int]:
    digest = hashlib.sha256(item.encode("utf-8")).digest()
    h1 = int.from_bytes(digest[:8], "big")
    # odd step so the k probes never collapse onto one position
    h2 = int.from_bytes(digest[8:16], "big") | 1
    return h1, h2


class BloomFilter:
    """Thread-safe Bloom filter sized from capacity and target FP rate.

    Parameters:
        expected_elements: Planned number of distinct inserts (n).
        fp_rate: Target false positive rate at capacity (p0).

    Raises InvalidConfiguration if ``expected_elements <= 0`` or
    ``fp_rate`` is not strictly between 0 and 1. Inserting past capacity
    is allowed; it raises the false positive rate but never causes a
    false negative.
    """

    def __init__(self, expected_elements: int, fp_rate: float = 0.01) -> None:
        self._m = optimal_size(expected_elements, fp_rate)
        self._k = optimal_hashes(self._m, expected_elements)
        self._expected = expected_elements
        self._target_fp = fp_rate
        self._count = 0
        self._bits = array.array("Q", bytes(8 * ((self._m + 63) // 64)))
        self._lock = ReadWriteLock()
        self._over_capacity_logged = False

    @property
    def size_bits(self) -> int:
        return self._m

    @property
    def num_hashes(self) -> int:
        return self._k

    @property
    def expected_elements(self) -> int:
        return self._expected

    @property
    def target_fp_rate(self) -> float:
        return self._target_fp

    @property
    def count(self) -> int:
        """Number of add() calls so far (duplicates included)."""
        return self._count

    def _positions(self, item: str) -> list[int]:
        h1, h2 = _hash_pair(item)
        m = self._m
        return [(h1 + i * h2) % m for i in range(self._k)]

    def add(self, item: str) -> None:
        """Mark the k bit positions of *item*."""
        positions = self._positions(item)
        with self._lock.write():
            bits = self._bits
            for pos in positions:
                bits[pos >> 6] |= 1 << (pos & 63)
            self._count += 1
            over = self._count > self._expected and not self._over_capacity_logged
            if over:
                self._over_capacity_logged = True
        if over:
            log.warning(
                "bloom filter past planned capacity (%d > %d); "
                "false positive rate will exceed %.4f",
                self._count, self._expected, self._target_fp,
            )

    def might_contain(self, item: str) -> bool:
        """False means definitely never added. True means probably added."""
        positions = self._positions(item)
        with self._lock.read():
            bits = self._bits
            for pos in positions:
                if not bits[pos >> 6] & (1 << (pos & 63)):
                    return False
        return True

    def fill_ratio(self) -> float:
        """Fraction of bits currently set."""
        with self._lock.read():
            set_bits = sum(bin(word).count("1") for word in self._bits)
        return set_bits / self._m

    def estimated_fp_rate(self) -> float:
        """FP rate implied by the observed fill ratio: fill ** k."""
        return min(1.0, self.fill_ratio() ** self._k)

    def theoretical_fp_rate(self) -> float:
        """FP rate predicted from the insert count: (1 - e^(-kn/m))^k."""
        n = self._count
        if n == 0:
            return 0.0
        return (1.0 - math.exp(-self._k * n / self._m)) ** self._k

    def memory_bytes(self) -> int:
        return len(self._bits) * 8

    def clear(self) -> None:
        """Reset every bit. Only for rebuilding from the source of truth."""
        with self._lock.write():
            for i in range(len(self._bits)):
                self._bits[i] = 0
            self._count = 0
            self._over_capacity_logged = False
        log.info("bloom filter cleared (m=%d, k=%d)", self._m, self._k)

    def stats(self) -> str:
        return (
            f"BloomFilter[bits={self._m}, hashes={self._k}, count={self._count}, "
            f"fill={self.fill_ratio():.4f}, est_fp={self.estimated_fp_rate():.6f}]"
        )

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and self.might_contain(item)

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"BloomFilter(expected_elements={self._expected}, fp_rate={self._target_fp})"
