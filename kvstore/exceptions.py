"""Exception hierarchy for kvstore.

All kvstore-specific exceptions inherit from KVStoreError, so callers can
catch broad or specific failure modes. Lookups never raise: absence is
reported through a found flag.
"""

from __future__ import annotations


class KVStoreError(Exception):
    """Base exception for all kvstore errors."""


class ConfigurationError(KVStoreError):
    """Invalid store configuration or a failing construction option."""


# --- Record errors ---


class RecordDecodeError(KVStoreError):
    """Raw payload could not be reconstituted into a record."""

    def __init__(self, reason: str, key: str | None = None) -> None:
        self.reason = reason
        self.key = key
        super().__init__(f"{key}: {reason}" if key else reason)


# --- Store errors ---


class StoreError(KVStoreError):
    """Base for persistence layer failures."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}" if reason else path)


class StoreReadError(StoreError):
    """Failed to read or parse the store file."""


class StoreWriteError(StoreError):
    """Failed to write the store file."""
