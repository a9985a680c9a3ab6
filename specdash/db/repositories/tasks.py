"""SQLite implementation of TaskRepository."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from specdash.db.repositories.base import TaskRepository


class SqliteTaskRepository(TaskRepository):
    """SQLite-backed task storage. Tasks are replaced wholesale per sync."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def delete_by_feature(self, feature_id: int) -> None:
        await self.db.execute("DELETE FROM tasks WHERE feature_id = ?", (feature_id,))
        await self.db.commit()

    async def upsert(self, task_data: dict, feature_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """INSERT INTO tasks (
                feature_id, task_id, description, status,
                phase, phase_order, is_parallel, dependencies,
                story_label, file_path, line_number,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(feature_id, task_id) DO UPDATE SET
                description=excluded.description, status=excluded.status,
                phase=excluded.phase, phase_order=excluded.phase_order,
                is_parallel=excluded.is_parallel,
                dependencies=excluded.dependencies,
                story_label=excluded.story_label,
                file_path=excluded.file_path,
                line_number=excluded.line_number,
                updated_at=excluded.updated_at
            """,
            (
                feature_id,
                task_data["taskId"],
                task_data.get("description", ""),
                task_data.get("status", "not_started"),
                task_data.get("phase"),
                task_data.get("phaseOrder", 0),
                1 if task_data.get("isParallel") else 0,
                json.dumps(task_data.get("dependencies", [])),
                task_data.get("storyLabel"),
                task_data.get("filePath"),
                task_data.get("lineNumber"),
                now,
                now,
            ),
        )
        await self.db.commit()

    async def list_by_feature(self, feature_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM tasks WHERE feature_id = ? ORDER BY phase_order, line_number, task_id",
            (feature_id,),
        ) as cur:
            rows = await cur.fetchall()
            return [dict(r) for r in rows]

    async def count_by_status(self, project_id: int) -> dict[str, int]:
        """Task counts per status across every feature of a project."""
        async with self.db.execute(
            """SELECT t.status AS status, COUNT(*) AS cnt
               FROM tasks t JOIN features f ON f.id = t.feature_id
               WHERE f.project_id = ?
               GROUP BY t.status""",
            (project_id,),
        ) as cur:
            rows = await cur.fetchall()
            return {r["status"]: r["cnt"] for r in rows}
