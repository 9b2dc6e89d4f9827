"""
Shared fixtures for the sqlitestore test suite.

Provides a temporary SQLite backend, a store driven by a fake clock,
and a manual ticker so the cleanup loop can be stepped without real
timers.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from sqlitestore.backend import SQLiteBackend
from sqlitestore.store import SessionStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class ManualTicker:
    """Ticker whose waits only return when tick() is called.

    Each tick() releases exactly one wait; ticks issued while nothing
    is waiting are held until the next wait.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.waits = 0
        self.intervals: list[float] = []

    async def __call__(self, interval: float) -> None:
        self.waits += 1
        self.intervals.append(interval)
        await self._queue.get()

    def tick(self) -> None:
        self._queue.put_nowait(None)


# ============================================================================
# Helpers
# ============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def eventually():
    """Poll a (possibly async) predicate until it is truthy or time runs out."""

    async def _eventually(predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            result = predicate()
            if inspect.isawaitable(result):
                result = await result
            if result:
                return
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _eventually


# ============================================================================
# Storage fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "sessions.db"


@pytest_asyncio.fixture
async def backend(db_path):
    b = SQLiteBackend(db_path)
    await b.open()
    yield b
    await b.close()


@pytest_asyncio.fixture
async def store(backend, clock):
    """Store with background cleanup disabled; sweeps are run by hand."""
    s = SessionStore(backend, cleanup_interval=0, clock=clock)
    yield s
    s.cleanup.stop()
    await s.cleanup.wait_stopped()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Undo any logging.basicConfig(force=True) done by the code under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
