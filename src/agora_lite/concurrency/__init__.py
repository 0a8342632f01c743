"""Thread-safe building blocks shared by the stateful components.

  - ReadWriteLock: many readers OR one writer, writer preference
  - StripedMap: hash-partitioned map with atomic compute_if_absent
"""
from agora_lite.concurrency.rwlock import ReadWriteLock
from agora_lite.concurrency.striped_map import StripedMap

__all__ = [
    "ReadWriteLock",
    "StripedMap",
]
