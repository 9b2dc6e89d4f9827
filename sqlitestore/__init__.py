"""
sqlitestore
===========

Durable, expiring key-value storage for web sessions on SQLite.
"""

from sqlitestore.backend import Backend, SQLiteBackend
from sqlitestore.cleanup import CleanupScheduler, SchedulerState
from sqlitestore.models import SessionRecord
from sqlitestore.store import DEFAULT_CLEANUP_INTERVAL, SessionStore

__version__ = "0.1.0"

__all__ = [
    "Backend",
    "SQLiteBackend",
    "CleanupScheduler",
    "SchedulerState",
    "SessionRecord",
    "SessionStore",
    "DEFAULT_CLEANUP_INTERVAL",
]
