"""SQLite implementation of FeatureRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import FeatureRepository


class SqliteFeatureRepository(FeatureRepository):
    """SQLite-backed feature storage, one row per ``specs/NNN-name`` directory."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, feature_data: dict, project_id: int) -> int:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO features (
                project_id, feature_number, feature_name, feature_dir,
                title, status, spec_path, priority, created_date,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(project_id, feature_number) DO UPDATE SET
                feature_name=excluded.feature_name,
                feature_dir=excluded.feature_dir,
                title=excluded.title, status=excluded.status,
                spec_path=excluded.spec_path, priority=excluded.priority,
                created_date=excluded.created_date,
                updated_at=excluded.updated_at
            """,
            (
                project_id,
                feature_data["featureNumber"],
                feature_data.get("featureName", ""),
                feature_data.get("featureDir", ""),
                feature_data.get("title"),
                feature_data.get("status", "draft"),
                feature_data.get("specPath", ""),
                feature_data.get("priority"),
                feature_data.get("createdDate"),
                now,
                now,
            ),
        )
        await self.db.commit()

        row = await self.get_by_number(project_id, feature_data["featureNumber"])
        return int(row["id"]) if row else 0

    async def get_by_number(self, project_id: int, feature_number: str) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM features WHERE project_id = ? AND feature_number = ?",
            (project_id, feature_number),
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def get_by_id(self, feature_id: int) -> dict | None:
        async with self.db.execute(
            "SELECT * FROM features WHERE id = ?", (feature_id,)
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def list_by_project(self, project_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM features WHERE project_id = ? ORDER BY feature_number",
            (project_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]

    async def delete(self, feature_id: int) -> None:
        await self.db.execute("DELETE FROM features WHERE id = ?", (feature_id,))
        await self.db.commit()

    async def update_task_completion(self, feature_id: int) -> float:
        """Recompute done/total for the feature's tasks as a percentage."""
        async with self.db.execute(
            """SELECT COUNT(*) AS total,
                      SUM(CASE WHEN status = 'done' THEN 1 ELSE 0 END) AS done
               FROM tasks WHERE feature_id = ?""",
            (feature_id,),
        ) as cur:
            row = await cur.fetchone()
        total = row["total"] or 0
        done = row["done"] or 0
        pct = round(done / total * 100, 1) if total else 0.0

        await self.db.execute(
            "UPDATE features SET task_completion_pct = ? WHERE id = ?",
            (pct, feature_id),
        )
        await self.db.commit()
        return pct

    async def count_by_status(self, project_id: int) -> dict[str, int]:
        async with self.db.execute(
            "SELECT status, COUNT(*) AS cnt FROM features WHERE project_id = ? GROUP BY status",
            (project_id,),
        ) as cur:
            rows = await cur.fetchall()
            return {r["status"]: r["cnt"] for r in rows}
