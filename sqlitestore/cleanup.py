"""
Cleanup Scheduler
==================

Background loop that deletes expired session records on a fixed
interval. Each step waits on two signals, the next tick and the
one-shot stop event, whichever fires first. Once stop is observed no
further sweep is issued.

States:
  - IDLE    : constructed, not started (also the disabled state when
              interval <= 0)
  - RUNNING : loop task alive
  - STOPPED : stop requested; terminal, never restarts

A failing sweep is logged and counted; it never ends the loop.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

log = logging.getLogger("sqlitestore.cleanup")


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class CleanupScheduler:
    """Runs ``sweep`` every ``interval`` seconds until stopped."""

    def __init__(
        self,
        sweep: Callable[[], Awaitable[int]],
        interval: float,
        *,
        ticker: Optional[Callable[[float], Awaitable[None]]] = None,
        name: str = "session-cleanup",
    ):
        self.sweep = sweep
        self.interval = interval
        self.name = name
        self._ticker = ticker or asyncio.sleep
        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None
        self._state = SchedulerState.IDLE

        # Observability
        self.sweeps = 0
        self.failures = 0
        self.removed = 0
        self.last_error: Optional[BaseException] = None
        self.last_run: Optional[float] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Launch the loop. Returns True if a task was started."""
        if self._state is SchedulerState.STOPPED:
            raise RuntimeError(f"{self.name} scheduler is stopped and cannot be restarted")
        if self._state is SchedulerState.RUNNING:
            return False
        if not self.enabled:
            log.debug("%s disabled (interval=%s)", self.name, self.interval)
            return False

        self._stop = asyncio.Event()
        self._state = SchedulerState.RUNNING
        self._task = asyncio.create_task(self._loop(self._stop), name=self.name)
        log.info("%s started (interval=%ss)", self.name, self.interval)
        return True

    def stop(self) -> None:
        """Signal the loop to exit. Safe to call more than once."""
        if self._state is SchedulerState.STOPPED:
            return
        self._state = SchedulerState.STOPPED
        if self._stop is not None:
            self._stop.set()
        log.info("%s stopped", self.name)

    async def wait_stopped(self) -> None:
        """Wait for the loop task to exit (an in-flight sweep finishes first)."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _loop(self, stop: asyncio.Event) -> None:
        stopped = asyncio.ensure_future(stop.wait())
        tick: Optional[asyncio.Future] = None
        try:
            while not stop.is_set():
                tick = asyncio.ensure_future(self._ticker(self.interval))
                await asyncio.wait({tick, stopped}, return_when=asyncio.FIRST_COMPLETED)
                # stop wins a tie with the tick
                if stop.is_set():
                    break
                await self.run_once()
        finally:
            for fut in (tick, stopped):
                if fut is not None and not fut.done():
                    fut.cancel()

    async def run_once(self) -> int:
        """Run one sweep, recording the outcome. Never raises Exception."""
        self.last_run = time.time()
        try:
            removed = await self.sweep()
        except Exception as e:
            self.failures += 1
            self.last_error = e
            log.error("%s sweep failed: %s", self.name, e, exc_info=True)
            return 0

        self.sweeps += 1
        self.removed += removed
        if removed:
            log.info("%s removed %d expired session(s)", self.name, removed)
        else:
            log.debug("%s sweep: nothing expired", self.name)
        return removed
