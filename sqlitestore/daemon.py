"""
sqlitestore Cleanup Daemon
==========================

Runs the cleanup scheduler as a standalone foreground process with
logging and graceful shutdown on SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from sqlitestore.config import StoreConfig

logger = logging.getLogger(__name__)


def setup_logging(*, debug: bool = False, log_file: str | Path | None = None) -> None:
    """Configure logging to stdout and optionally to a file."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
    ]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        handlers=handlers,
        force=True,
    )

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


async def run_cleanup(config: StoreConfig, *, stop_event: asyncio.Event | None = None) -> None:
    """Open the store, sweep on the configured interval until signalled."""
    stop_event = stop_event or asyncio.Event()

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/thread; rely on stop_event
            pass

    try:
        async with config.build_store() as store:
            if not store.cleanup.enabled:
                logger.warning(
                    "Cleanup interval is %s; nothing to do, exiting.",
                    config.cleanup.interval,
                )
                return
            logger.info("Cleanup daemon running against %s", config.database.path)
            await stop_event.wait()
            logger.info("Shutting down cleanup daemon...")
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
