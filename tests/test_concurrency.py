"""Tests for concurrent access to a Store."""

import threading

import pytest

from kvstore.logging import configure_logging
from kvstore.records import PhoneCode


@pytest.fixture(autouse=True)
def _quiet_logs():
    configure_logging("ERROR")


class TestConcurrentAccess:
    def test_concurrent_sets_all_land(self, store):
        def writer(n):
            for i in range(50):
                store.set(f"w{n}-{i}", PhoneCode(phone=str(i)))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store) == 400

    def test_readers_never_see_partial_record(self, store):
        store.set("k", PhoneCode(phone="0", code="0"))
        errors = []
        stop = threading.Event()

        def writer():
            for i in range(500):
                store.set("k", PhoneCode(phone=str(i), code=str(i)))
            stop.set()

        def reader():
            while not stop.is_set():
                value, found = store.get("k")
                if not found or value.phone != value.code or value.stamp is None:
                    errors.append(value)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        w = threading.Thread(target=writer)
        for t in readers:
            t.start()
        w.start()
        w.join()
        for t in readers:
            t.join()
        assert errors == []

    def test_save_during_writes_produces_consistent_file(self, make_store, store_path):
        store = make_store()
        done = threading.Event()

        def writer():
            for i in range(200):
                store.set(f"k{i}", PhoneCode(phone=str(i), code=str(i)))
            done.set()

        t = threading.Thread(target=writer)
        t.start()
        while not done.is_set():
            store.save()
        t.join()
        store.save()

        fresh = make_store()
        assert len(fresh) == 200
        for key in fresh.keys():
            value, _ = fresh.get(key)
            assert value.phone == value.code
