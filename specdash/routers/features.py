"""Features API router: read access to the synced document mirror."""
from __future__ import annotations

import json
import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from specdash.db.repositories import (
    SqliteEntityRepository,
    SqliteFeatureRepository,
    SqlitePlanRepository,
    SqliteRequirementRepository,
    SqliteResearchRepository,
    SqliteTaskRepository,
)
from specdash.models import (
    Entity,
    Feature,
    Plan,
    Requirement,
    ResearchDecision,
    Task,
)
from specdash.routers import get_db

features_router = APIRouter(prefix="/api/features", tags=["features"])
logger = logging.getLogger("specdash.api")


def _safe_json(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _safe_json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        return []
    return parsed if isinstance(parsed, list) else []


# ── Row → response model ────────────────────────────────────────────

def _feature_from_row(row: dict) -> Feature:
    return Feature(
        id=row["id"],
        projectId=row["project_id"],
        featureNumber=row["feature_number"],
        featureName=row["feature_name"],
        title=row.get("title"),
        status=row.get("status") or "draft",
        specPath=row.get("spec_path") or "",
        priority=row.get("priority"),
        createdDate=row.get("created_date"),
        taskCompletionPct=row.get("task_completion_pct") or 0.0,
        updatedAt=row.get("updated_at") or "",
    )


def _task_from_row(row: dict) -> Task:
    return Task(
        id=row["id"],
        featureId=row["feature_id"],
        taskId=row["task_id"],
        description=row.get("description") or "",
        status=row.get("status") or "not_started",
        phase=row.get("phase"),
        phaseOrder=row.get("phase_order") or 0,
        isParallel=bool(row.get("is_parallel")),
        dependencies=_safe_json_list(row.get("dependencies")),
        storyLabel=row.get("story_label"),
        filePath=row.get("file_path"),
        lineNumber=row.get("line_number"),
    )


def _entity_from_row(row: dict) -> Entity:
    return Entity(
        id=row["id"],
        featureId=row["feature_id"],
        name=row["entity_name"],
        description=row.get("description"),
        attributes=_safe_json_list(row.get("attributes")),
        relationships=_safe_json_list(row.get("relationships")),
        validationRules=_safe_json_list(row.get("validation_rules")),
    )


def _requirement_from_row(row: dict) -> Requirement:
    return Requirement(
        id=row["id"],
        featureId=row["feature_id"],
        requirementId=row["requirement_id"],
        description=row.get("description") or "",
        type=row.get("type") or "functional",
        priority=row.get("priority"),
        linkedTasks=_safe_json_list(row.get("linked_tasks")),
        acceptanceCriteria=_safe_json_list(row.get("acceptance_criteria")),
    )


def _plan_from_row(row: dict) -> Plan:
    return Plan(
        id=row["id"],
        featureId=row["feature_id"],
        summary=row.get("summary"),
        techStack=_safe_json(row.get("tech_stack")),
        phases=_safe_json_list(row.get("phases")),
        dependencies=_safe_json_list(row.get("dependencies")),
        risks=_safe_json_list(row.get("risks")),
    )


def _decision_from_row(row: dict) -> ResearchDecision:
    return ResearchDecision(
        id=row["id"],
        featureId=row["feature_id"],
        title=row["title"],
        decision=row.get("decision") or "",
        rationale=row.get("rationale"),
        alternatives=_safe_json_list(row.get("alternatives")),
        context=row.get("context"),
    )


async def _require_feature(db: aiosqlite.Connection, feature_id: int) -> dict:
    row = await SqliteFeatureRepository(db).get_by_id(feature_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"Feature {feature_id} not found")
    return row


# ── Endpoints ───────────────────────────────────────────────────────

@features_router.get("", response_model=list[Feature])
async def list_features(project_id: int, db: aiosqlite.Connection = Depends(get_db)):
    """List a project's features ordered by feature number."""
    rows = await SqliteFeatureRepository(db).list_by_project(project_id)
    return [_feature_from_row(r) for r in rows]


@features_router.get("/{feature_id}", response_model=Feature)
async def get_feature(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    return _feature_from_row(await _require_feature(db, feature_id))


@features_router.get("/{feature_id}/tasks", response_model=list[Task])
async def get_feature_tasks(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    await _require_feature(db, feature_id)
    rows = await SqliteTaskRepository(db).list_by_feature(feature_id)
    return [_task_from_row(r) for r in rows]


@features_router.get("/{feature_id}/entities", response_model=list[Entity])
async def get_feature_entities(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    await _require_feature(db, feature_id)
    rows = await SqliteEntityRepository(db).list_by_feature(feature_id)
    return [_entity_from_row(r) for r in rows]


@features_router.get("/{feature_id}/requirements", response_model=list[Requirement])
async def get_feature_requirements(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    await _require_feature(db, feature_id)
    rows = await SqliteRequirementRepository(db).list_by_feature(feature_id)
    return [_requirement_from_row(r) for r in rows]


@features_router.get("/{feature_id}/plan", response_model=Plan)
async def get_feature_plan(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    await _require_feature(db, feature_id)
    row = await SqlitePlanRepository(db).get_by_feature(feature_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"No plan for feature {feature_id}")
    return _plan_from_row(row)


@features_router.get("/{feature_id}/research", response_model=list[ResearchDecision])
async def get_feature_research(feature_id: int, db: aiosqlite.Connection = Depends(get_db)):
    await _require_feature(db, feature_id)
    rows = await SqliteResearchRepository(db).list_by_feature(feature_id)
    return [_decision_from_row(r) for r in rows]
