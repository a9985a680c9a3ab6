"""SQLite implementation of PlanRepository."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import PlanRepository


class SqlitePlanRepository(PlanRepository):
    """SQLite-backed implementation plans, one row per feature."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, plan_data: dict, feature_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO plans (
                feature_id, summary, tech_stack, phases, dependencies, risks,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(feature_id) DO UPDATE SET
                summary=excluded.summary, tech_stack=excluded.tech_stack,
                phases=excluded.phases, dependencies=excluded.dependencies,
                risks=excluded.risks, updated_at=excluded.updated_at
            """,
            (
                feature_id,
                plan_data.get("summary"),
                json.dumps(plan_data.get("techStack", {})),
                json.dumps(plan_data.get("phases", [])),
                json.dumps(plan_data.get("dependencies", [])),
                json.dumps(plan_data.get("risks", [])),
                now,
                now,
            ),
        )
        await self.db.commit()

    async def get_by_feature(self, feature_id: int) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM plans WHERE feature_id = ?", (feature_id,)
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def delete_by_feature(self, feature_id: int) -> None:
        await self.db.execute("DELETE FROM plans WHERE feature_id = ?", (feature_id,))
        await self.db.commit()
