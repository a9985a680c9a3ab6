"""HTTP routers and their shared dependencies."""
from __future__ import annotations

import aiosqlite
from fastapi import HTTPException, Request

from specdash.db.sync_engine import SyncEngine


def get_db(request: Request) -> aiosqlite.Connection:
    database = getattr(request.app.state, "db", None)
    if database is None or not database.is_open:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return database.conn


def get_sync_engine(request: Request) -> SyncEngine:
    engine = getattr(request.app.state, "sync_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Sync engine not initialized")
    return engine
