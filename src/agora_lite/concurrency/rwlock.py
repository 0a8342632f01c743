"""Read-write lock: many concurrent readers or one exclusive writer.

Used wherever a component has a hot read path and a comparatively rare
write path: Bloom filter lookups vs. inserts, latency estimate reads vs.
the periodic refresh, recommendation snapshots vs. accepted friend
requests.

    lock = ReadWriteLock()

    with lock.read():
        value = state.estimate

    with lock.write():
        state.estimate = new_value

Writers are preferred: once a writer is queued, new readers wait. A
steady stream of recommendation queries can therefore never starve an
edge insertion.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Writer-preferring read-write lock built on a single Condition."""

    __slots__ = ("_cond", "_readers", "_writers_waiting", "_writer_active")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writer_active = False

    @contextmanager
    def read(self) -> Iterator[None]:
        """Shared access. Waits while a writer holds or awaits the lock."""
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Exclusive access. Waits for active readers and writers to leave."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        """Number of threads currently holding the read side.

        Diagnostic for tests and monitoring; not used for locking decisions.
        """
        with self._cond:
            return self._readers

    @property
    def write_locked(self) -> bool:
        """True while a writer holds the lock. Diagnostic, like readers."""
        with self._cond:
            return self._writer_active
