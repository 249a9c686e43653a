"""Record types bundled with kvstore."""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from kvstore.record import JSONRecord


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Verification codes ---

@dataclass
class PhoneCode(JSONRecord):
    """A verification code sent to a phone number."""

    phone: str = ""
    code: str = ""
    stamp: datetime | None = None  # set on insertion

    def initialize(self) -> PhoneCode:
        return dataclasses.replace(self, stamp=_utc_now())


# --- Sessions ---

@dataclass
class SessionToken(JSONRecord):
    token: str = ""
    user_id: str = ""
    issued_at: datetime | None = None
    expires_in: int = 0  # seconds, 0 = never

    def initialize(self) -> SessionToken:
        return dataclasses.replace(self, issued_at=_utc_now())

    @property
    def is_expired(self) -> bool:
        if self.expires_in <= 0 or self.issued_at is None:
            return False
        return time.time() > self.issued_at.timestamp() + self.expires_in


RECORD_TYPES: dict[str, type[JSONRecord]] = {
    "phone_code": PhoneCode,
    "session_token": SessionToken,
}
