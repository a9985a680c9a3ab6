"""SQLite implementation of EntityRepository."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import EntityRepository


class SqliteEntityRepository(EntityRepository):
    """SQLite-backed data-model entities, merged by (feature, name)."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, entity_data: dict, feature_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO entities (
                feature_id, entity_name, description,
                attributes, relationships, validation_rules,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(feature_id, entity_name) DO UPDATE SET
                description=excluded.description,
                attributes=excluded.attributes,
                relationships=excluded.relationships,
                validation_rules=excluded.validation_rules,
                updated_at=excluded.updated_at
            """,
            (
                feature_id,
                entity_data["name"],
                entity_data.get("description"),
                json.dumps(entity_data.get("attributes", [])),
                json.dumps(entity_data.get("relationships", [])),
                json.dumps(entity_data.get("validationRules", [])),
                now,
                now,
            ),
        )
        await self.db.commit()

    async def get_by_name(self, feature_id: int, name: str) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM entities WHERE feature_id = ? AND entity_name = ?",
            (feature_id, name),
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def list_by_feature(self, feature_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM entities WHERE feature_id = ? ORDER BY entity_name",
            (feature_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]
