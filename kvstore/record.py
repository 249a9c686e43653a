"""Record contract: what any value stored in a Store must provide."""

from __future__ import annotations

import dataclasses
import json
import typing
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from kvstore.exceptions import RecordDecodeError

R = TypeVar("R", bound="Record")


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def _is_datetime(hint: Any) -> bool:
    return hint is datetime or datetime in typing.get_args(hint)


class Record(ABC):
    """Abstract storable value.

    ``initialize`` produces the canonical stored form when a value is set;
    ``reconstitute`` rebuilds a typed value from one entry of the store file.
    Both return new instances and leave ``self`` untouched.
    """

    @abstractmethod
    def initialize(self: R) -> R: ...

    @abstractmethod
    def reconstitute(self: R, raw: bytes) -> R:
        """Decode ``raw`` or raise RecordDecodeError."""

    def to_dict(self) -> dict[str, Any]:
        """Natural structured form written by Store.save."""
        if not dataclasses.is_dataclass(self):
            raise TypeError(f"{type(self).__name__} must be a dataclass or override to_dict()")
        return _to_jsonable(dataclasses.asdict(self))


class JSONRecord(Record):
    """Record base for dataclasses that round-trip through a JSON object.

    Unknown keys are ignored, missing keys fall back to field defaults, and
    ISO-8601 strings are parsed back into ``datetime`` for datetime fields.
    Subclasses only implement ``initialize``.
    """

    def reconstitute(self: R, raw: bytes) -> R:
        cls = type(self)
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RecordDecodeError(f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise RecordDecodeError(f"expected object, got {type(data).__name__}")

        hints = typing.get_type_hints(cls)
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if _is_datetime(hints.get(f.name)) and isinstance(value, str):
                try:
                    value = datetime.fromisoformat(value.replace("Z", "+00:00"))
                except ValueError as e:
                    raise RecordDecodeError(f"{f.name}: {e}") from e
            kwargs[f.name] = value
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise RecordDecodeError(str(e)) from e
