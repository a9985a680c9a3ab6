"""SQLite implementation of RequirementRepository."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import RequirementRepository


class SqliteRequirementRepository(RequirementRepository):
    """SQLite-backed FR/NFR requirements, replaced wholesale per sync."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def delete_by_feature(self, feature_id: int) -> None:
        await self.db.execute("DELETE FROM requirements WHERE feature_id = ?", (feature_id,))
        await self.db.commit()

    async def upsert(self, requirement_data: dict, feature_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO requirements (
                feature_id, requirement_id, type, description, priority,
                linked_tasks, acceptance_criteria, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(feature_id, requirement_id) DO UPDATE SET
                type=excluded.type, description=excluded.description,
                priority=excluded.priority,
                linked_tasks=excluded.linked_tasks,
                acceptance_criteria=excluded.acceptance_criteria,
                updated_at=excluded.updated_at
            """,
            (
                feature_id,
                requirement_data["requirementId"],
                requirement_data.get("type", "functional"),
                requirement_data.get("description", ""),
                requirement_data.get("priority"),
                json.dumps(requirement_data.get("linkedTasks", [])),
                json.dumps(requirement_data.get("acceptanceCriteria", [])),
                now,
                now,
            ),
        )
        await self.db.commit()

    async def list_by_feature(self, feature_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM requirements WHERE feature_id = ? ORDER BY requirement_id",
            (feature_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]
