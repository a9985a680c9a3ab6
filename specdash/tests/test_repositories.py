import json
import unittest

import aiosqlite

from specdash.db.repositories import (
    SqliteEntityRepository,
    SqliteFeatureRepository,
    SqlitePlanRepository,
    SqliteProjectRepository,
    SqliteResearchRepository,
    SqliteTaskRepository,
)
from specdash.db.sqlite_migrations import SCHEMA_VERSION, run_migrations


class _RepositoryTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await self.db.execute("PRAGMA foreign_keys=ON")
        await run_migrations(self.db)
        self.project_id = await SqliteProjectRepository(self.db).create("demo", "/tmp/demo")
        self.features = SqliteFeatureRepository(self.db)
        self.feature_id = await self.features.upsert(
            {"featureNumber": "001", "featureName": "login", "specPath": "specs/001-login/spec.md"},
            self.project_id,
        )

    async def asyncTearDown(self) -> None:
        await self.db.close()


class MigrationTests(unittest.IsolatedAsyncioTestCase):
    async def test_migrations_are_idempotent(self) -> None:
        async with aiosqlite.connect(":memory:") as db:
            await run_migrations(db)
            await run_migrations(db)

            async with db.execute("SELECT COUNT(*), MAX(version) FROM schema_version") as cur:
                count, version = await cur.fetchone()
            self.assertEqual(count, 1)
            self.assertEqual(version, SCHEMA_VERSION)
            self.assertEqual(version, 1)

            async with db.execute("PRAGMA table_info(entities)") as cur:
                entity_columns = {row[1] for row in await cur.fetchall()}
            async with db.execute("PRAGMA table_info(features)") as cur:
                feature_columns = {row[1] for row in await cur.fetchall()}
            self.assertIn("validation_rules", entity_columns)
            self.assertIn("feature_dir", feature_columns)


class ProjectRepositoryTests(_RepositoryTestCase):
    async def test_create_is_keyed_by_root_path(self) -> None:
        repo = SqliteProjectRepository(self.db)

        again = await repo.create("renamed", "/tmp/demo")

        self.assertEqual(again, self.project_id)
        rows = await repo.list_all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["name"], "renamed")
        self.assertIsNone(await repo.get_by_id(999))


class FeatureRepositoryTests(_RepositoryTestCase):
    async def test_upsert_keeps_row_id_and_updates_fields(self) -> None:
        again = await self.features.upsert(
            {"featureNumber": "001", "featureName": "login", "title": "Login", "status": "approved"},
            self.project_id,
        )

        self.assertEqual(again, self.feature_id)
        row = await self.features.get_by_number(self.project_id, "001")
        self.assertEqual(row["title"], "Login")
        self.assertEqual(row["status"], "approved")

    async def test_task_completion_percentage(self) -> None:
        tasks = SqliteTaskRepository(self.db)
        for task_id, status in [("T001", "done"), ("T002", "not_started"), ("T003", "in_progress"), ("T004", "not_started")]:
            await tasks.upsert({"taskId": task_id, "description": task_id, "status": status}, self.feature_id)

        pct = await self.features.update_task_completion(self.feature_id)

        self.assertEqual(pct, 25.0)
        row = await self.features.get_by_id(self.feature_id)
        self.assertEqual(row["task_completion_pct"], 25.0)

    async def test_completion_is_zero_without_tasks(self) -> None:
        self.assertEqual(await self.features.update_task_completion(self.feature_id), 0.0)

    async def test_delete_cascades_to_children(self) -> None:
        tasks = SqliteTaskRepository(self.db)
        await tasks.upsert({"taskId": "T001", "description": "one"}, self.feature_id)
        await SqliteEntityRepository(self.db).upsert({"name": "User"}, self.feature_id)

        await self.features.delete(self.feature_id)

        self.assertEqual(await tasks.list_by_feature(self.feature_id), [])
        self.assertEqual(await SqliteEntityRepository(self.db).list_by_feature(self.feature_id), [])


class TaskRepositoryTests(_RepositoryTestCase):
    async def test_json_and_flag_columns(self) -> None:
        tasks = SqliteTaskRepository(self.db)
        await tasks.upsert(
            {"taskId": "T002", "description": "parser", "isParallel": True, "dependencies": ["T001"], "lineNumber": 6},
            self.feature_id,
        )

        rows = await tasks.list_by_feature(self.feature_id)

        self.assertEqual(rows[0]["is_parallel"], 1)
        self.assertEqual(json.loads(rows[0]["dependencies"]), ["T001"])
        self.assertEqual(rows[0]["line_number"], 6)
        self.assertEqual(await tasks.count_by_status(self.project_id), {"not_started": 1})

    async def test_delete_by_feature(self) -> None:
        tasks = SqliteTaskRepository(self.db)
        await tasks.upsert({"taskId": "T001"}, self.feature_id)

        await tasks.delete_by_feature(self.feature_id)

        self.assertEqual(await tasks.list_by_feature(self.feature_id), [])


class MergeRepositoryTests(_RepositoryTestCase):
    async def test_entity_upsert_merges_by_name(self) -> None:
        entities = SqliteEntityRepository(self.db)
        await entities.upsert({"name": "User", "description": "old"}, self.feature_id)
        await entities.upsert(
            {"name": "User", "description": "new", "attributes": [{"name": "id", "type": "uuid"}]},
            self.feature_id,
        )

        rows = await entities.list_by_feature(self.feature_id)

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["description"], "new")
        self.assertEqual(json.loads(rows[0]["attributes"]), [{"name": "id", "type": "uuid"}])

    async def test_research_upsert_merges_by_title(self) -> None:
        research = SqliteResearchRepository(self.db)
        await research.upsert({"title": "Storage", "decision": "JSON"}, self.feature_id)
        await research.upsert({"title": "Storage", "decision": "SQLite"}, self.feature_id)

        row = await research.get_by_title(self.feature_id, "Storage")

        self.assertEqual(row["decision"], "SQLite")
        self.assertEqual(len(await research.list_by_feature(self.feature_id)), 1)

    async def test_plan_is_singleton_per_feature(self) -> None:
        plans = SqlitePlanRepository(self.db)
        await plans.upsert({"summary": "first"}, self.feature_id)
        await plans.upsert({"summary": "second", "techStack": {"Storage": "SQLite"}}, self.feature_id)

        row = await plans.get_by_feature(self.feature_id)

        self.assertEqual(row["summary"], "second")
        self.assertEqual(json.loads(row["tech_stack"]), {"Storage": "SQLite"})

        await plans.delete_by_feature(self.feature_id)
        self.assertIsNone(await plans.get_by_feature(self.feature_id))


if __name__ == "__main__":
    unittest.main()
