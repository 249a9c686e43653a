"""Thread-safe key-value store of typed records, persisted to one JSON file.

The whole mapping lives in memory. ``load`` replaces it from the store file
and ``save`` writes it back only when something changed since the last load
or save. A Store is bound to one record type, given as a prototype instance
whose ``reconstitute`` decodes every entry of the file.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from typing import Any, Generic, TypeVar

from kvstore.config import StoreConfig, StoreOption
from kvstore.exceptions import (
    ConfigurationError,
    RecordDecodeError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from kvstore.logging import get_logger
from kvstore.record import Record
from kvstore.rwlock import RWLock

R = TypeVar("R", bound=Record)

_INDENT = 3


class Store(Generic[R]):
    """In-memory mapping of str -> record with load/save to ``config.store_file``.

    Usage:
        with Store(PhoneCode(), with_store_file("codes.json")) as store:
            store.set("+15550100", PhoneCode(phone="+15550100", code="4711"))

    ``get`` takes the shared side of the lock; ``set``, ``delete``, ``load``
    and ``save`` take the exclusive side, and the last two hold it across
    their file I/O.
    """

    def __init__(self, item_type: R, *options: StoreOption, log: Any | None = None) -> None:
        if item_type is None:
            raise ConfigurationError("item_type is required")
        if not isinstance(item_type, Record):
            raise ConfigurationError(
                f"item_type must be a Record, got {type(item_type).__name__}"
            )

        self._data: dict[str, R] = {}
        self._item_type = item_type
        self._dirty = False
        self._lock = RWLock()
        self.log = (log if log is not None else get_logger()).bind(component="kvstore")
        self.config: StoreConfig | None = None

        for option in options:
            option(self)
        if self.config is None:
            self.config = StoreConfig()

        self.log.debug(
            "store_created",
            record_type=type(item_type).__name__,
            store_file=self.config.store_file,
            strict=self.config.strict,
        )
        self.load()

    def __enter__(self) -> Store[R]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Store(record_type={type(self._item_type).__name__}, "
            f"store_file={self.store_file!r}, entries={len(self)}, dirty={self.dirty})"
        )

    @property
    def store_file(self) -> str:
        assert self.config is not None
        return self.config.store_file

    @property
    def dirty(self) -> bool:
        with self._lock.read_locked():
            return self._dirty

    # --- Mapping operations ---

    def set(self, key: str, value: R) -> bool:
        """Store ``value.initialize()`` under ``key``. Returns True if the key existed."""
        with self._lock.write_locked():
            existed = key in self._data
            self._data[key] = value.initialize()
            self._dirty = True
        self.log.debug("store_set", key=key, replaced=existed)
        return existed

    def get(self, key: str) -> tuple[R | None, bool]:
        """Return ``(record, True)`` or ``(None, False)`` when ``key`` is absent."""
        with self._lock.read_locked():
            value = self._data.get(key)
            found = key in self._data
        self.log.debug("store_get", key=key, found=found)
        return value, found

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it existed."""
        with self._lock.write_locked():
            existed = key in self._data
            if existed:
                del self._data[key]
                self._dirty = True
        self.log.debug("store_delete", key=key, existed=existed)
        return existed

    def keys(self) -> list[str]:
        with self._lock.read_locked():
            return list(self._data)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._data

    # --- Persistence ---

    def load(self) -> None:
        """Replace the mapping with the contents of the store file.

        A missing or unreadable file leaves the mapping as it is. A file that
        is not a JSON object yields an empty mapping. An entry that fails to
        decode is kept as a copy of the prototype record. In strict mode the
        last three cases raise StoreReadError and the mapping is left alone.
        """
        assert self.config is not None
        path = self.config.store_file
        strict = self.config.strict

        with self._lock.write_locked():
            if not os.path.exists(path):
                self.log.info("store_file_missing", store_file=path)
                return
            try:
                with open(path, "rb") as f:
                    raw = f.read()
            except OSError as e:
                if strict:
                    raise StoreReadError(path, str(e)) from e
                self.log.info("store_file_unreadable", store_file=path, error=str(e))
                return

            try:
                entries = json.loads(raw)
                if not isinstance(entries, dict):
                    raise ValueError(f"expected object, got {type(entries).__name__}")
            except (UnicodeDecodeError, ValueError) as e:
                if strict:
                    raise StoreReadError(path, f"parse error: {e}") from e
                self.log.error("store_parse_failed", store_file=path, error=str(e))
                entries = {}

            data: dict[str, R] = {}
            failed = 0
            for key, payload in entries.items():
                try:
                    data[key] = self._item_type.reconstitute(json.dumps(payload).encode("utf-8"))
                except RecordDecodeError as e:
                    if strict:
                        raise StoreReadError(path, f"{key}: {e.reason}") from e
                    self.log.error("record_decode_failed", store_file=path, key=key, error=e.reason)
                    data[key] = copy.deepcopy(self._item_type)
                    failed += 1

            self._data = data
            self._dirty = False

        self.log.info("store_loaded", store_file=path, entries=len(data), failed=failed)

    def save(self) -> bool:
        """Write the mapping to the store file if it changed since the last load/save.

        Returns False when there was nothing to write (empty or unchanged) and
        True when a write was attempted. In lenient mode a failed write is
        logged and still counts as attempted; in strict mode it raises
        StoreWriteError and the store stays dirty.
        """
        assert self.config is not None
        path = self.config.store_file
        strict = self.config.strict

        with self._lock.write_locked():
            if not self._data:
                self._dirty = False
                return False
            if not self._dirty:
                return False

            try:
                text = json.dumps(
                    {key: record.to_dict() for key, record in self._data.items()},
                    indent=_INDENT,
                    ensure_ascii=False,
                )
            except (TypeError, ValueError) as e:
                if strict:
                    raise StoreWriteError(path, f"serialize error: {e}") from e
                self.log.error("store_serialize_failed", store_file=path, error=str(e))
                return False

            try:
                _write_private(path, text)
            except OSError as e:
                if strict:
                    raise StoreWriteError(path, str(e)) from e
                self.log.error("store_save_failed", store_file=path, error=str(e))
            else:
                self.log.info("store_saved", store_file=path, entries=len(self._data))
            self._dirty = False
            return True

    def close(self) -> None:
        """Final best-effort save."""
        try:
            self.save()
        except StoreError as e:
            self.log.error("store_close_failed", store_file=e.path, error=e.reason)


def _write_private(path: str, text: str) -> None:
    """Replace ``path`` with ``text``, readable and writable by the owner only.

    A symlinked ``path`` is written through to its target.
    """
    path = os.path.realpath(path)
    directory = os.path.dirname(path)
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".kvstore-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
