"""Tests for the ReadWriteLock.

Covers: concurrent readers, writer exclusion, writer preference,
and no deadlock under stress.
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from agora_lite.concurrency.rwlock import ReadWriteLock


def test_multiple_readers():
    """10 threads can hold the read lock at the same time."""
    lock = ReadWriteLock()
    barrier = threading.Barrier(10)
    peak = 0
    peak_lock = threading.Lock()

    def reader():
        nonlocal peak
        with lock.read():
            barrier.wait(timeout=5.0)
            with peak_lock:
                peak = max(peak, lock.readers)

    threads = [threading.Thread(target=reader) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10.0)

    assert peak == 10
    assert lock.readers == 0


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    writer_entered = threading.Event()
    release_writer = threading.Event()
    reader_entered = threading.Event()

    def writer():
        with lock.write():
            writer_entered.set()
            release_writer.wait(timeout=5.0)

    def reader():
        with lock.read():
            reader_entered.set()

    wt = threading.Thread(target=writer)
    wt.start()
    writer_entered.wait(timeout=5.0)
    assert lock.write_locked

    rt = threading.Thread(target=reader)
    rt.start()
    assert not reader_entered.wait(timeout=0.2), "reader entered during write"

    release_writer.set()
    wt.join(timeout=5.0)
    rt.join(timeout=5.0)
    assert reader_entered.is_set()
    assert not lock.write_locked


def test_waiting_writer_blocks_new_readers():
    """Once a writer queues, later readers wait behind it."""
    lock = ReadWriteLock()
    first_reader_in = threading.Event()
    release_first_reader = threading.Event()
    order: list[str] = []

    def first_reader():
        with lock.read():
            first_reader_in.set()
            release_first_reader.wait(timeout=5.0)

    def writer():
        with lock.write():
            order.append("writer")

    def late_reader():
        with lock.read():
            order.append("reader")

    t1 = threading.Thread(target=first_reader)
    t1.start()
    first_reader_in.wait(timeout=5.0)

    tw = threading.Thread(target=writer)
    tw.start()
    time.sleep(0.05)  # let the writer queue up
    tr = threading.Thread(target=late_reader)
    tr.start()
    time.sleep(0.05)
    assert order == []

    release_first_reader.set()
    for t in (t1, tw, tr):
        t.join(timeout=5.0)
    assert order == ["writer", "reader"]


def test_no_deadlock_under_stress():
    lock = ReadWriteLock()
    counter = {"value": 0}

    def work(i: int) -> int:
        if i % 5 == 0:
            with lock.write():
                counter["value"] += 1
            return 0
        with lock.read():
            return counter["value"]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(work, range(2000)))

    assert counter["value"] == 400
    assert lock.readers == 0
    assert not lock.write_locked


def test_exception_releases_lock():
    lock = ReadWriteLock()
    try:
        with lock.write():
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    with lock.read():
        assert lock.readers == 1
