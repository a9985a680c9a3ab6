"""Database connection service.

Owns one aiosqlite connection with WAL mode and foreign keys enabled.
Constructed explicitly and passed to the services that need it, so tests
can run several independent instances side by side.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

from specdash.db.sqlite_migrations import run_migrations

logger = logging.getLogger("specdash.db")


class Database:
    """Lifecycle wrapper around the SQLite connection."""

    def __init__(self, path: str | Path = ":memory:"):
        self.path = str(path)
        self._conn: Optional[aiosqlite.Connection] = None

    async def init(self) -> aiosqlite.Connection:
        """Open the connection and apply migrations. Safe to call twice."""
        if self._conn is not None:
            return self._conn

        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.path)
        conn.row_factory = aiosqlite.Row
        # Enable WAL mode for better concurrent read performance
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.execute("PRAGMA busy_timeout=5000")
        await run_migrations(conn)
        logger.info(f"Database connection established: {self.path}")
        self._conn = conn
        return conn

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database is not initialized; call init() first")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("Database connection closed")
