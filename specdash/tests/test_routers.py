import os
import tempfile
import unittest
from pathlib import Path

from fastapi import HTTPException

from specdash.db.connection import Database
from specdash.db.sync_engine import SyncEngine
from specdash.routers import features as features_router
from specdash.routers import projects as projects_router

SPEC = """# Feature Specification: Search

**Status**: In Progress

## Requirements

- **FR-001**: Users can search
"""

TASKS = """## Phase 1: Core

- [x] T001 Index documents for FR-001
- [ ] T002 Query endpoint
"""


class RouterTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        feature_dir = self.root / "specs" / "001-search"
        feature_dir.mkdir(parents=True)
        (feature_dir / "spec.md").write_text(SPEC, encoding="utf-8")
        (feature_dir / "tasks.md").write_text(TASKS, encoding="utf-8")
        (feature_dir / "plan.md").write_text("## Summary\n\nFull-text search.\n", encoding="utf-8")

        self.database = Database(":memory:")
        self.db = await self.database.init()
        self.engine = SyncEngine(self.db)

    async def asyncTearDown(self) -> None:
        await self.database.close()
        self._tmp.cleanup()

    async def _register_and_sync(self) -> int:
        project = await projects_router.register_project(
            projects_router.RegisterProjectRequest(rootPath=str(self.root)),
            db=self.db,
        )
        result = await projects_router.sync_project(project.id, db=self.db, engine=self.engine)
        self.assertEqual(result.synced, 1)
        return project.id

    async def test_register_uses_directory_name(self) -> None:
        project = await projects_router.register_project(
            projects_router.RegisterProjectRequest(rootPath=str(self.root)),
            db=self.db,
        )

        self.assertEqual(project.name, self.root.name)
        listed = await projects_router.list_projects(db=self.db)
        self.assertEqual([p.id for p in listed], [project.id])

    async def test_register_stores_resolved_root(self) -> None:
        relative = os.path.relpath(self.root / "specs" / "..")

        project = await projects_router.register_project(
            projects_router.RegisterProjectRequest(rootPath=relative),
            db=self.db,
        )

        self.assertEqual(project.rootPath, str(self.root.resolve()))
        again = await projects_router.register_project(
            projects_router.RegisterProjectRequest(rootPath=str(self.root)),
            db=self.db,
        )
        self.assertEqual(again.id, project.id)

    async def test_register_rejects_missing_directory(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await projects_router.register_project(
                projects_router.RegisterProjectRequest(rootPath=str(self.root / "missing")),
                db=self.db,
            )
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_stats_after_sync(self) -> None:
        project_id = await self._register_and_sync()

        stats = await projects_router.get_project_stats(project_id, db=self.db)

        self.assertEqual(stats.featureCount, 1)
        self.assertEqual(stats.featuresByStatus, {"in_progress": 1})
        self.assertEqual(stats.taskCount, 2)
        self.assertEqual(stats.completionPct, 50.0)

    async def test_feature_endpoints(self) -> None:
        project_id = await self._register_and_sync()

        features = await features_router.list_features(project_id, db=self.db)
        self.assertEqual(len(features), 1)
        feature = features[0]
        self.assertEqual(feature.title, "Search")
        self.assertEqual(feature.taskCompletionPct, 50.0)

        tasks = await features_router.get_feature_tasks(feature.id, db=self.db)
        self.assertEqual([t.taskId for t in tasks], ["T001", "T002"])
        self.assertEqual(tasks[0].phase, "Phase 1: Core")

        requirements = await features_router.get_feature_requirements(feature.id, db=self.db)
        self.assertEqual(requirements[0].linkedTasks, ["T001"])

        plan = await features_router.get_feature_plan(feature.id, db=self.db)
        self.assertEqual(plan.summary, "Full-text search.")

        self.assertEqual(await features_router.get_feature_entities(feature.id, db=self.db), [])
        self.assertEqual(await features_router.get_feature_research(feature.id, db=self.db), [])

    async def test_unknown_ids_return_404(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await features_router.get_feature(999, db=self.db)
        self.assertEqual(ctx.exception.status_code, 404)

        with self.assertRaises(HTTPException) as ctx:
            await projects_router.get_project(999, db=self.db)
        self.assertEqual(ctx.exception.status_code, 404)


if __name__ == "__main__":
    unittest.main()
