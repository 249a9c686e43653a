"""kvstore — a thread-safe key-value store of typed records with JSON file persistence."""

from kvstore.config import StoreConfig, with_config, with_store_file, with_strict
from kvstore.exceptions import (
    ConfigurationError,
    KVStoreError,
    RecordDecodeError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from kvstore.record import JSONRecord, Record
from kvstore.store import Store

__all__ = [
    "ConfigurationError",
    "JSONRecord",
    "KVStoreError",
    "Record",
    "RecordDecodeError",
    "Store",
    "StoreConfig",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "__version__",
    "with_config",
    "with_store_file",
    "with_strict",
]

__version__ = "0.1.0"
