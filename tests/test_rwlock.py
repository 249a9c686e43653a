"""Tests for the reader-writer lock."""

import threading
import time

import pytest

from kvstore.rwlock import RWLock


class TestRWLock:
    def test_readers_share(self):
        lock = RWLock()
        inside = threading.Barrier(3, timeout=5)

        def reader():
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self):
        lock = RWLock()
        events = []
        lock.acquire_write()

        def reader():
            with lock.read_locked():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        t.join(timeout=5)
        assert events == ["write-done", "read"]

    def test_waiting_writer_blocks_new_readers(self):
        lock = RWLock()
        events = []
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                events.append("write")

        def late_reader():
            with lock.read_locked():
                events.append("read")

        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert events == []
        lock.release_read()
        w.join(timeout=5)
        r.join(timeout=5)
        assert events == ["write", "read"]

    def test_unbalanced_release_raises(self):
        lock = RWLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
