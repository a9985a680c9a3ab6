"""SQLite implementation of ResearchRepository."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import ResearchRepository


class SqliteResearchRepository(ResearchRepository):
    """SQLite-backed research decisions, merged by (feature, title)."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, decision_data: dict, feature_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO research_decisions (
                feature_id, title, decision, rationale, alternatives, context,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(feature_id, title) DO UPDATE SET
                decision=excluded.decision, rationale=excluded.rationale,
                alternatives=excluded.alternatives, context=excluded.context,
                updated_at=excluded.updated_at
            """,
            (
                feature_id,
                decision_data["title"],
                decision_data.get("decision", ""),
                decision_data.get("rationale"),
                json.dumps(decision_data.get("alternatives", [])),
                decision_data.get("context"),
                now,
                now,
            ),
        )
        await self.db.commit()

    async def get_by_title(self, feature_id: int, title: str) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM research_decisions WHERE feature_id = ? AND title = ?",
            (feature_id, title),
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def delete_by_feature(self, feature_id: int) -> None:
        await self.db.execute(
            "DELETE FROM research_decisions WHERE feature_id = ?", (feature_id,)
        )
        await self.db.commit()

    async def list_by_feature(self, feature_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM research_decisions WHERE feature_id = ? ORDER BY id",
            (feature_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]
