"""Bounded, append-only history of timestamped samples.

A ring buffer over collections.deque(maxlen=capacity): appending to a
full history silently evicts the oldest sample. The default capacity of
1440 holds a day of one-minute latency probes.

Readers get copies (lists / tuples), never the live deque, so a
forecast can run on a snapshot while new samples keep arriving.
"""
from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.domain.types import Timestamp

DEFAULT_CAPACITY = 1440


@dataclass(frozen=True, slots=True)
class Sample:
    timestamp: Timestamp
    value: float


@dataclass(frozen=True, slots=True)
class LatencyStatistics:
    """Summary of a history window. std_dev is the population deviation."""
    mean: float
    std_dev: float
    minimum: float
    maximum: float
    count: int
    predicted: float | None = None


class SampleHistory:
    """Thread-safe ring buffer of Sample records.

    Args:
        capacity: Maximum samples retained (oldest evicted first).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise InvalidConfiguration(f"capacity must be positive, got {capacity}")
        self._samples: deque[Sample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen  # type: ignore[return-value]

    def append(self, value: float, timestamp: Timestamp | None = None) -> Sample:
        sample = Sample(time.time() if timestamp is None else timestamp, float(value))
        with self._lock:
            self._samples.append(sample)
        return sample

    def samples(self, last: int | None = None) -> list[Sample]:
        """Oldest-first copy of the history, or of its newest *last* items."""
        with self._lock:
            items = list(self._samples)
        if last is not None:
            if last < 0:
                raise ValueError(f"last must be non-negative, got {last}")
            items = items[len(items) - last:] if last else []
        return items

    def values(self, last: int | None = None) -> list[float]:
        return [s.value for s in self.samples(last)]

    def statistics(self, last: int | None = None) -> LatencyStatistics | None:
        """Mean, deviation and range of the window; None when empty."""
        vals = self.values(last)
        if not vals:
            return None
        n = len(vals)
        mean = math.fsum(vals) / n
        variance = math.fsum((v - mean) ** 2 for v in vals) / n
        return LatencyStatistics(
            mean=mean,
            std_dev=math.sqrt(variance),
            minimum=min(vals),
            maximum=max(vals),
            count=n,
        )

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
