"""Document tree → DB sync engine.

Walks ``<project>/specs/NNN-name/`` directories, parses the five feature
documents and reconciles the results into the store through the
repositories. Tasks and requirements are replaced on every sync; entities
and research decisions are merged by name/title; the plan is a per-feature
singleton.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path

import aiosqlite

from specdash import config
from specdash.models import (
    ParsedDataModel,
    ParsedPlan,
    ParsedResearch,
    ParsedSpec,
    ParsedTasks,
    SyncResult,
)
from specdash.parsers import (
    parse_data_model_content,
    parse_plan_content,
    parse_research_content,
    parse_spec_content,
    parse_tasks_content,
)
from specdash.paths import (
    DOCUMENT_NAMES,
    feature_dir_under_root,
    is_feature_dir_name,
    normalize_path,
    split_feature_dir,
)
from specdash.db.repositories import (
    SqliteEntityRepository,
    SqliteFeatureRepository,
    SqlitePlanRepository,
    SqliteProjectRepository,
    SqliteRequirementRepository,
    SqliteResearchRepository,
    SqliteTaskRepository,
)
from specdash.db.repositories.base import (
    EntityRepository,
    FeatureRepository,
    PlanRepository,
    ProjectRepository,
    RequirementRepository,
    ResearchRepository,
    TaskRepository,
)

logger = logging.getLogger("specdash.sync")

SPEC_FILE, TASKS_FILE, DATA_MODEL_FILE, PLAN_FILE, RESEARCH_FILE = DOCUMENT_NAMES


def requirement_type(requirement_id: str) -> str:
    """``NFR-*`` ids are non-functional, everything else functional."""
    return "non_functional" if requirement_id.upper().startswith("NFR") else "functional"


def story_priority(parsed: ParsedSpec) -> str | None:
    """Highest user-story priority (``P1`` beats ``P2``), if there are stories."""
    priorities = sorted(story.priority for story in parsed.userStories if story.priority)
    return priorities[0] if priorities else None


def linked_task_ids(requirement_id: str, tasks: list[dict]) -> list[str]:
    pattern = re.compile(rf"\b{re.escape(requirement_id)}\b", re.IGNORECASE)
    return sorted({t["task_id"] for t in tasks if pattern.search(t.get("description") or "")})


class SyncEngine:
    """Full and incremental file → DB synchronization for spec projects."""

    def __init__(
        self,
        db: aiosqlite.Connection,
        *,
        project_repo: ProjectRepository | None = None,
        feature_repo: FeatureRepository | None = None,
        task_repo: TaskRepository | None = None,
        entity_repo: EntityRepository | None = None,
        requirement_repo: RequirementRepository | None = None,
        plan_repo: PlanRepository | None = None,
        research_repo: ResearchRepository | None = None,
    ):
        self.db = db
        self.project_repo: ProjectRepository = project_repo or SqliteProjectRepository(db)
        self.feature_repo: FeatureRepository = feature_repo or SqliteFeatureRepository(db)
        self.task_repo: TaskRepository = task_repo or SqliteTaskRepository(db)
        self.entity_repo: EntityRepository = entity_repo or SqliteEntityRepository(db)
        self.requirement_repo: RequirementRepository = requirement_repo or SqliteRequirementRepository(db)
        self.plan_repo: PlanRepository = plan_repo or SqlitePlanRepository(db)
        self.research_repo: ResearchRepository = research_repo or SqliteResearchRepository(db)

    # ── Full sync ───────────────────────────────────────────────────

    async def sync_project_features(self, project_id: int, project_root: str | Path) -> SyncResult:
        """Sync every ``specs/NNN-name`` directory under ``project_root``."""
        specs_dir = Path(project_root) / config.SPECS_DIR_NAME
        if not specs_dir.is_dir():
            logger.warning(f"No specs directory under {project_root}")
            return SyncResult(synced=0, errors=["specs directory not found"])

        result = SyncResult()
        seen_numbers: set[str] = set()
        for feature_dir in self._feature_dirs(specs_dir):
            split = split_feature_dir(feature_dir.name)
            if split:
                seen_numbers.add(split[0])
            try:
                await self._sync_feature_dir(project_id, feature_dir)
                result.synced += 1
            except Exception as e:
                logger.error(f"Failed to sync feature {feature_dir.name}: {e}")
                result.errors.append(f"Failed to sync {feature_dir.name}: {e}")

        removed = await self._remove_missing_features(project_id, seen_numbers)
        logger.info(
            f"Synced {result.synced} feature(s) for project {project_id}"
            f" ({len(result.errors)} error(s), {removed} removed)"
        )
        return result

    def _feature_dirs(self, specs_dir: Path) -> list[Path]:
        return sorted(
            (p for p in specs_dir.iterdir() if p.is_dir() and is_feature_dir_name(p.name)),
            key=lambda p: p.name,
        )

    async def _remove_missing_features(self, project_id: int, seen_numbers: set[str]) -> int:
        removed = 0
        for row in await self.feature_repo.list_by_project(project_id):
            if row["feature_number"] not in seen_numbers:
                await self.feature_repo.delete(row["id"])
                logger.info(f"Removed feature {row['feature_number']}-{row['feature_name']}")
                removed += 1
        return removed

    async def _sync_feature_dir(self, project_id: int, feature_dir: Path) -> int:
        spec_path = feature_dir / SPEC_FILE
        spec_content = await self._read(spec_path)
        parsed_spec = parse_spec_content(spec_content) if spec_content is not None else None
        feature_id = await self._upsert_feature(project_id, feature_dir, parsed_spec)

        tasks_content = await self._read(feature_dir / TASKS_FILE)
        if tasks_content is not None:
            await self._replace_tasks(feature_id, parse_tasks_content(tasks_content))

        data_model_content = await self._read(feature_dir / DATA_MODEL_FILE)
        if data_model_content is not None:
            await self._merge_entities(feature_id, parse_data_model_content(data_model_content))

        if parsed_spec is not None:
            await self._replace_requirements(feature_id, parsed_spec)

        plan_content = await self._read(feature_dir / PLAN_FILE)
        if plan_content is not None:
            await self._upsert_plan(feature_id, parse_plan_content(plan_content))

        research_content = await self._read(feature_dir / RESEARCH_FILE)
        if research_content is not None:
            await self._merge_research(feature_id, parse_research_content(research_content))

        return feature_id

    # ── Incremental sync ────────────────────────────────────────────

    async def sync_feature_by_path(self, project_id: int, file_path: str | Path) -> bool:
        """Re-sync the single document at ``file_path``.

        The path is resolved against the project's registered root. Returns
        False when it is not inside one of that root's feature directories,
        is not one of the feature documents, or no longer exists.
        """
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            logger.warning(f"Change for unknown project {project_id}: {file_path}")
            return False

        project_root = Path(project["root_path"])
        path = Path(normalize_path(file_path))
        feature_dir_name = feature_dir_under_root(path, project_root)
        split = split_feature_dir(feature_dir_name) if feature_dir_name else None
        if split is None:
            return False

        feature = await self.feature_repo.get_by_number(project_id, split[0])
        if feature is None:
            logger.info(f"Unknown feature {feature_dir_name}; running full sync of {project_root}")
            await self.sync_project_features(project_id, project_root)
            return True

        feature_dir = project_root / config.SPECS_DIR_NAME / feature_dir_name
        if not feature_dir.is_dir():
            await self.feature_repo.delete(feature["id"])
            logger.info(f"Feature directory {feature_dir_name} removed; deleted feature {feature['id']}")
            return True

        if path.name not in DOCUMENT_NAMES or path.parent != feature_dir:
            return False

        content = await self._read(path)
        if content is None:
            return False

        feature_id = int(feature["id"])
        try:
            if path.name == SPEC_FILE:
                parsed_spec = parse_spec_content(content)
                await self._upsert_feature(project_id, feature_dir, parsed_spec)
                await self._replace_requirements(feature_id, parsed_spec)
            elif path.name == TASKS_FILE:
                await self._replace_tasks(feature_id, parse_tasks_content(content))
                await self._refresh_requirement_links(feature_id)
            elif path.name == DATA_MODEL_FILE:
                await self._merge_entities(feature_id, parse_data_model_content(content))
            elif path.name == PLAN_FILE:
                await self._upsert_plan(feature_id, parse_plan_content(content))
            elif path.name == RESEARCH_FILE:
                await self._merge_research(feature_id, parse_research_content(content))
        except Exception as e:
            logger.error(f"Failed to sync {path}: {e}")
            return False

        logger.info(f"Synced {path.name} for feature {feature_dir_name}")
        return True

    # ── Record reconciliation ───────────────────────────────────────

    async def _read(self, path: Path) -> str | None:
        if not path.is_file():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def _upsert_feature(
        self, project_id: int, feature_dir: Path, parsed: ParsedSpec | None
    ) -> int:
        split = split_feature_dir(feature_dir.name)
        if split is None:
            raise ValueError(f"not a feature directory: {feature_dir.name}")
        feature_number, feature_name = split

        feature_data = {
            "featureNumber": feature_number,
            "featureName": feature_name,
            "featureDir": feature_dir.name,
            "title": feature_name,
            "status": "draft",
            "specPath": normalize_path(feature_dir / SPEC_FILE),
            "priority": None,
            "createdDate": None,
        }
        if parsed is not None:
            feature_data.update(
                {
                    "title": parsed.title or feature_name,
                    "status": parsed.status,
                    "priority": story_priority(parsed),
                    "createdDate": parsed.createdDate,
                }
            )
        return await self.feature_repo.upsert(feature_data, project_id)

    async def _replace_tasks(self, feature_id: int, parsed: ParsedTasks) -> None:
        await self.task_repo.delete_by_feature(feature_id)
        for task in parsed.tasks:
            await self.task_repo.upsert(task.model_dump(), feature_id)
        await self.feature_repo.update_task_completion(feature_id)

    async def _merge_entities(self, feature_id: int, parsed: ParsedDataModel) -> None:
        for entity in parsed.entities:
            await self.entity_repo.upsert(entity.model_dump(), feature_id)

    async def _replace_requirements(self, feature_id: int, parsed: ParsedSpec) -> None:
        tasks = await self.task_repo.list_by_feature(feature_id)
        await self.requirement_repo.delete_by_feature(feature_id)
        for requirement in parsed.requirements:
            await self.requirement_repo.upsert(
                {
                    "requirementId": requirement.id,
                    "description": requirement.description,
                    "type": requirement_type(requirement.id),
                    "priority": requirement.priority,
                    "linkedTasks": linked_task_ids(requirement.id, tasks),
                },
                feature_id,
            )

    async def _refresh_requirement_links(self, feature_id: int) -> None:
        tasks = await self.task_repo.list_by_feature(feature_id)
        for row in await self.requirement_repo.list_by_feature(feature_id):
            await self.requirement_repo.upsert(
                {
                    "requirementId": row["requirement_id"],
                    "description": row["description"],
                    "type": row["type"],
                    "priority": row["priority"],
                    "linkedTasks": linked_task_ids(row["requirement_id"], tasks),
                    "acceptanceCriteria": json.loads(row["acceptance_criteria"] or "[]"),
                },
                feature_id,
            )

    async def _upsert_plan(self, feature_id: int, parsed: ParsedPlan) -> None:
        await self.plan_repo.upsert(parsed.model_dump(), feature_id)

    async def _merge_research(self, feature_id: int, parsed: ParsedResearch) -> None:
        for decision in parsed.decisions:
            await self.research_repo.upsert(decision.model_dump(), feature_id)
