"""
Session Store
==============

Durable, expiring token -> payload storage for web sessions.

The store adds expiry semantics on top of a Backend: reads only return
records whose expiry is strictly after now, writes are a single atomic
upsert keyed on token, and a CleanupScheduler sweeps expired rows in
the background. No locks are held here; consistency is the backend's.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable

from sqlitestore.backend import Backend, SQLiteBackend
from sqlitestore.cleanup import CleanupScheduler
from sqlitestore.models import SessionRecord, utcnow

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL = 300.0  # seconds


class SessionStore:
    """Expiry-aware session storage.

    Construction is inert. ``open()`` provisions the schema and
    ``start()`` launches background cleanup; ``async with`` does both.
    A ``cleanup_interval`` of zero or less disables background cleanup,
    leaving ``delete_expired()`` to the caller.
    """

    def __init__(
        self,
        backend: Backend,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        *,
        clock: Callable[[], datetime] | None = None,
        ticker: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.backend = backend
        self._clock = clock or utcnow
        self.cleanup = CleanupScheduler(
            self.delete_expired,
            cleanup_interval,
            ticker=ticker,
        )

    @classmethod
    def sqlite(
        cls,
        db_path: str | Path,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        *,
        table: str = "sessions",
        **kwargs,
    ) -> SessionStore:
        return cls(SQLiteBackend(db_path, table=table), cleanup_interval, **kwargs)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def open(self) -> None:
        await self.backend.open()

    def start(self) -> bool:
        """Start background cleanup. Returns False when it is disabled."""
        return self.cleanup.start()

    async def close(self) -> None:
        """Stop cleanup, let any running sweep finish, then close the backend."""
        self.cleanup.stop()
        await self.cleanup.wait_stopped()
        await self.backend.close()

    async def __aenter__(self):
        await self.open()
        self.start()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ── Operations ───────────────────────────────────────────────────────

    async def find(self, token: str) -> tuple[bytes | None, bool]:
        """Return ``(data, True)`` for an unexpired record, else ``(None, False)``.

        A missing or expired token is not an error. Backend failures
        propagate.
        """
        now = self._clock()
        record = await self.backend.get(token, now)
        # a backend that ignores the expiry predicate still must not leak
        if record is None or not record.is_valid(now):
            return None, False
        return record.data, True

    async def commit(self, token: str, data: bytes, expiry: datetime) -> None:
        """Insert or wholly replace the record for ``token``.

        Past expiries are stored as given; the record is simply never
        found again and goes away on the next sweep.
        """
        await self.backend.upsert(SessionRecord(token=token, data=data, expiry=expiry))

    async def delete(self, token: str) -> None:
        """Remove the record for ``token``. Missing tokens are a no-op."""
        removed = await self.backend.delete(token)
        if not removed:
            logger.debug("Delete of unknown session token ignored")

    async def delete_expired(self) -> int:
        """Remove every record that expired before now. Returns rows removed."""
        return await self.backend.delete_expired(self._clock())

    async def all(self) -> dict[str, bytes]:
        """All unexpired records as ``{token: data}``."""
        return await self.backend.all(self._clock())
