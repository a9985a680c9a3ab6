"""Repository protocols for the document mirror.

Every method is async. Writes take camelCase dicts (the shape of the
pydantic models); reads return ``dict(row)`` with the table's column names.
``SyncEngine`` is typed against these protocols and accepts any
implementation; the ``Sqlite*Repository`` classes are the defaults.
"""
from __future__ import annotations

from typing import Protocol


class ProjectRepository(Protocol):
    async def create(self, name: str, root_path: str) -> int: ...
    async def get_by_id(self, project_id: int) -> dict | None: ...
    async def get_by_path(self, root_path: str) -> dict | None: ...
    async def list_all(self) -> list[dict]: ...


class FeatureRepository(Protocol):
    async def upsert(self, feature_data: dict, project_id: int) -> int:
        """Insert or update by (project, feature number). Returns the row id."""
        ...

    async def get_by_number(self, project_id: int, feature_number: str) -> dict | None: ...
    async def get_by_id(self, feature_id: int) -> dict | None: ...
    async def list_by_project(self, project_id: int) -> list[dict]: ...
    async def delete(self, feature_id: int) -> None: ...
    async def update_task_completion(self, feature_id: int) -> float: ...


class TaskRepository(Protocol):
    """Replace semantics: ``delete_by_feature`` then ``upsert`` each task."""

    async def delete_by_feature(self, feature_id: int) -> None: ...
    async def upsert(self, task_data: dict, feature_id: int) -> None: ...
    async def list_by_feature(self, feature_id: int) -> list[dict]: ...


class EntityRepository(Protocol):
    """Merge semantics: entities are upserted by name and never bulk-deleted."""

    async def upsert(self, entity_data: dict, feature_id: int) -> None: ...
    async def get_by_name(self, feature_id: int, name: str) -> dict | None: ...
    async def list_by_feature(self, feature_id: int) -> list[dict]: ...


class RequirementRepository(Protocol):
    """Replace semantics, like tasks."""

    async def delete_by_feature(self, feature_id: int) -> None: ...
    async def upsert(self, requirement_data: dict, feature_id: int) -> None: ...
    async def list_by_feature(self, feature_id: int) -> list[dict]: ...


class PlanRepository(Protocol):
    async def upsert(self, plan_data: dict, feature_id: int) -> None: ...
    async def get_by_feature(self, feature_id: int) -> dict | None: ...
    async def delete_by_feature(self, feature_id: int) -> None: ...


class ResearchRepository(Protocol):
    """Merge semantics. ``delete_by_feature`` exists for explicit clearing only."""

    async def upsert(self, decision_data: dict, feature_id: int) -> None: ...
    async def get_by_title(self, feature_id: int, title: str) -> dict | None: ...
    async def delete_by_feature(self, feature_id: int) -> None: ...
    async def list_by_feature(self, feature_id: int) -> list[dict]: ...
