"""
Session Record
===============

The on-disk representation of one session: token, payload, expiry.
Expiry is persisted as epoch seconds (REAL) and surfaced as an aware
UTC datetime.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def to_timestamp(dt: datetime) -> float:
    """Convert a datetime to epoch seconds. Naive values are local time."""
    return dt.timestamp()


def from_timestamp(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    """A single session row. One record per token."""

    token: str
    data: bytes
    expiry: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.token, str):
            raise TypeError(f"session token must be str, not {type(self.token).__name__}")
        if self.data is None:
            raise ValueError("session data must not be None")
        if self.expiry is None:
            raise ValueError("session expiry must not be None")
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError(f"session data must be bytes-like, not {type(self.data).__name__}")
        if not isinstance(self.data, bytes):
            self.data = bytes(self.data)

    def is_valid(self, now: datetime) -> bool:
        """True while the expiry is strictly after ``now``."""
        return to_timestamp(self.expiry) > to_timestamp(now)
