"""SQLite implementation of ProjectRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import ProjectRepository


class SqliteProjectRepository(ProjectRepository):
    """SQLite-backed project registry keyed by root path."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, name: str, root_path: str) -> int:
        """Register a project, or touch it if the root path is already known."""
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO projects (name, root_path, last_opened_at, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(root_path) DO UPDATE SET
                name=excluded.name, last_opened_at=excluded.last_opened_at
            """,
            (name, root_path, now, now),
        )
        await self.db.commit()
        row = await self.get_by_path(root_path)
        return int(row["id"]) if row else 0

    async def get_by_id(self, project_id: int) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM projects WHERE id = ?", (project_id,)
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def get_by_path(self, root_path: str) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM projects WHERE root_path = ?", (root_path,)
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def list_all(self) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM projects ORDER BY last_opened_at DESC"
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]
