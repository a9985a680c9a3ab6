"""API router for project registration and full syncs."""
from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from specdash.db.repositories import (
    SqliteFeatureRepository,
    SqliteProjectRepository,
    SqliteTaskRepository,
)
from specdash.db.sync_engine import SyncEngine
from specdash.models import Project, SyncResult
from specdash.routers import get_db, get_sync_engine

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])
logger = logging.getLogger("specdash.api")


# ── Request / response models ───────────────────────────────────────

class RegisterProjectRequest(BaseModel):
    rootPath: str
    name: str = ""


class ProjectStats(BaseModel):
    projectId: int
    featureCount: int = 0
    featuresByStatus: dict[str, int] = Field(default_factory=dict)
    taskCount: int = 0
    tasksByStatus: dict[str, int] = Field(default_factory=dict)
    completionPct: float = 0.0


def _project_from_row(row: dict) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        rootPath=row["root_path"],
        createdAt=row.get("created_at") or "",
        lastOpenedAt=row.get("last_opened_at") or "",
    )


async def _require_project(db: aiosqlite.Connection, project_id: int) -> dict:
    row = await SqliteProjectRepository(db).get_by_id(project_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return row


# ── Endpoints ───────────────────────────────────────────────────────

@projects_router.get("", response_model=list[Project])
async def list_projects(db: aiosqlite.Connection = Depends(get_db)):
    """List registered projects, most recently opened first."""
    rows = await SqliteProjectRepository(db).list_all()
    return [_project_from_row(r) for r in rows]


@projects_router.post("", response_model=Project)
async def register_project(
    req: RegisterProjectRequest,
    db: aiosqlite.Connection = Depends(get_db),
):
    """Register a project root, or touch it if it is already known."""
    root = Path(req.rootPath).expanduser().resolve()
    if not root.is_dir():
        raise HTTPException(status_code=400, detail=f"Not a directory: {req.rootPath}")

    repo = SqliteProjectRepository(db)
    project_id = await repo.create(req.name or root.name, str(root))
    row = await repo.get_by_id(project_id)
    if not row:
        raise HTTPException(status_code=500, detail="Project not found after create")
    logger.info(f"Registered project {project_id} at {root}")
    return _project_from_row(row)


@projects_router.get("/{project_id}", response_model=Project)
async def get_project(project_id: int, db: aiosqlite.Connection = Depends(get_db)):
    return _project_from_row(await _require_project(db, project_id))


@projects_router.post("/{project_id}/sync", response_model=SyncResult)
async def sync_project(
    project_id: int,
    db: aiosqlite.Connection = Depends(get_db),
    engine: SyncEngine = Depends(get_sync_engine),
):
    """Run a full sync of the project's specs tree."""
    project = await _require_project(db, project_id)
    try:
        return await engine.sync_project_features(project_id, project["root_path"])
    except Exception as e:
        logger.error(f"Sync failed for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@projects_router.get("/{project_id}/stats", response_model=ProjectStats)
async def get_project_stats(project_id: int, db: aiosqlite.Connection = Depends(get_db)):
    """Feature status counts and task completion across the project."""
    await _require_project(db, project_id)
    features_by_status = await SqliteFeatureRepository(db).count_by_status(project_id)
    tasks_by_status = await SqliteTaskRepository(db).count_by_status(project_id)

    task_count = sum(tasks_by_status.values())
    done = tasks_by_status.get("done", 0)
    return ProjectStats(
        projectId=project_id,
        featureCount=sum(features_by_status.values()),
        featuresByStatus=features_by_status,
        taskCount=task_count,
        tasksByStatus=tasks_by_status,
        completionPct=round(done / task_count * 100, 1) if task_count else 0.0,
    )
