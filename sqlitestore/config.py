"""
sqlitestore Configuration
=========================

Pydantic configuration for the CLI and cleanup daemon.
Reads from ~/.sqlitestore/config.json unless a path is given.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from sqlitestore.backend import validate_table_name
from sqlitestore.store import DEFAULT_CLEANUP_INTERVAL, SessionStore

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".sqlitestore"
CONFIG_FILE = CONFIG_DIR / "config.json"
DB_FILE = CONFIG_DIR / "sessions.db"


class DatabaseConfig(BaseModel):
    path: str = str(DB_FILE)
    table: str = "sessions"

    @field_validator("table")
    @classmethod
    def _check_table(cls, v: str) -> str:
        return validate_table_name(v)


class CleanupConfig(BaseModel):
    interval: float = DEFAULT_CLEANUP_INTERVAL  # seconds; <= 0 disables


class StoreConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    debug: bool = False

    def save(self, path: str | Path | None = None) -> Path:
        target = Path(path) if path else CONFIG_FILE
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.model_dump(), indent=2, default=str))
        logger.info("Config saved to %s", target)
        return target

    @classmethod
    def load(cls, path: str | Path | None = None) -> StoreConfig:
        source = Path(path) if path else CONFIG_FILE
        if source.exists():
            try:
                return cls(**json.loads(source.read_text()))
            except Exception as e:
                logger.warning("Config parse error, using defaults: %s", e)
        return cls()

    def build_store(self, **kwargs) -> SessionStore:
        return SessionStore.sqlite(
            self.database.path,
            self.cleanup.interval,
            table=self.database.table,
            **kwargs,
        )


def load_config(path: str | Path | None = None) -> StoreConfig:
    return StoreConfig.load(path)
