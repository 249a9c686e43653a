"""Shared fixtures for all tests."""

import pytest
import structlog

from kvstore.config import with_store_file, with_strict
from kvstore.records import PhoneCode
from kvstore.store import Store


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def _no_store_file_env(monkeypatch):
    monkeypatch.delenv("KVSTORE_STORE_FILE", raising=False)


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "store.json")


@pytest.fixture
def make_store(store_path):
    def factory(path=None, strict=False, item_type=None):
        options = [with_store_file(path or store_path)]
        if strict:
            options.append(with_strict())
        return Store(item_type or PhoneCode(), *options)

    return factory


@pytest.fixture
def store(make_store):
    return make_store()
