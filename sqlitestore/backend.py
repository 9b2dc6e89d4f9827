"""
Storage Backend
================

The persistence contract the session store is built on, and the
SQLite implementation of it (via aiosqlite).

A backend provides point lookup with an expiry predicate, an atomic
insert-or-update keyed on token, a bulk delete by expiry, and
idempotent schema provisioning. Errors from the driver are never
translated; they reach the caller as-is.
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import aiosqlite

from sqlitestore.models import SessionRecord, from_timestamp, to_timestamp

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_table_name(name: str) -> str:
    """Return ``name`` if it is a plain SQL identifier, else raise ValueError."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


class Backend(ABC):
    """Abstract transactional store for session records."""

    @abstractmethod
    async def open(self) -> None:
        """Connect (if needed) and create the schema if it is absent."""

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    async def get(self, token: str, now: datetime) -> SessionRecord | None:
        """Return the record for ``token`` only if its expiry is after ``now``."""

    @abstractmethod
    async def upsert(self, record: SessionRecord) -> None:
        """Insert the record, replacing data and expiry on token conflict."""

    @abstractmethod
    async def delete(self, token: str) -> int:
        """Delete the record for ``token``. Returns rows removed (0 or 1)."""

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete every record whose expiry is before ``now``."""

    @abstractmethod
    async def all(self, now: datetime) -> dict[str, bytes]:
        """Map of token -> data for every record unexpired at ``now``."""

    @abstractmethod
    async def count(self) -> int:
        """Number of physically stored records, expired ones included."""

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, *exc):
        await self.close()


class SQLiteBackend(Backend):
    """Session records in a single SQLite table.

    Pass ``connection`` to share an aiosqlite connection the caller
    manages; the backend will then leave it open on ``close()``.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        table: str = "sessions",
        connection: aiosqlite.Connection | None = None,
    ):
        if db_path is None and connection is None:
            raise ValueError("Either db_path or connection is required")
        self.db_path = Path(db_path) if db_path is not None else None
        self.table = validate_table_name(table)
        self._db = connection
        self._owns_connection = connection is None
        # one write transaction at a time on the shared connection
        self._write_lock = asyncio.Lock()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Backend not opened. Call open() first.")
        return self._db

    async def open(self) -> None:
        if self._db is None:
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(self.db_path))
            await self._db.execute("PRAGMA journal_mode=WAL")
        await self._create_table()
        logger.info("Session backend opened: %s (table=%s)", self.db_path or "<shared>", self.table)

    async def close(self) -> None:
        if self._db is not None and self._owns_connection:
            await self._db.close()
        self._db = None

    async def _create_table(self) -> None:
        await self.db.executescript(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                token   TEXT PRIMARY KEY,
                data    BLOB NOT NULL,
                expiry  REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_{self.table}_expiry
                ON {self.table}(expiry);
        """)
        await self.db.commit()

    # ── Record access ────────────────────────────────────────────────────

    async def get(self, token: str, now: datetime) -> SessionRecord | None:
        async with self.db.execute(
            f"SELECT token, data, expiry FROM {self.table} WHERE token = ? AND expiry > ?",
            (token, to_timestamp(now)),
        ) as cur:
            row = await cur.fetchone()
        if row is None:
            return None
        return SessionRecord(token=row[0], data=bytes(row[1]), expiry=from_timestamp(row[2]))

    async def _write(self, sql: str, params: tuple) -> int:
        """Run one write statement in its own transaction. Returns rowcount.

        On failure the transaction is rolled back so the write lock is
        released before the error propagates.
        """
        async with self._write_lock:
            try:
                cursor = await self.db.execute(sql, params)
                await self.db.commit()
            except BaseException:
                await self.db.rollback()
                raise
        return cursor.rowcount

    async def upsert(self, record: SessionRecord) -> None:
        await self._write(
            f"""INSERT INTO {self.table} (token, data, expiry)
                VALUES (?, ?, ?)
                ON CONFLICT(token) DO UPDATE SET
                    data = excluded.data,
                    expiry = excluded.expiry""",
            (record.token, record.data, to_timestamp(record.expiry)),
        )

    async def delete(self, token: str) -> int:
        return await self._write(
            f"DELETE FROM {self.table} WHERE token = ?",
            (token,),
        )

    async def delete_expired(self, now: datetime) -> int:
        return await self._write(
            f"DELETE FROM {self.table} WHERE expiry < ?",
            (to_timestamp(now),),
        )

    async def all(self, now: datetime) -> dict[str, bytes]:
        async with self.db.execute(
            f"SELECT token, data FROM {self.table} WHERE expiry > ? ORDER BY expiry ASC",
            (to_timestamp(now),),
        ) as cur:
            rows = await cur.fetchall()
        return {row[0]: bytes(row[1]) for row in rows}

    async def count(self) -> int:
        async with self.db.execute(f"SELECT COUNT(*) FROM {self.table}") as cur:
            row = await cur.fetchone()
        return row[0] if row else 0
