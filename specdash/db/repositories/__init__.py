"""Repository package for database access."""

from .projects import SqliteProjectRepository
from .features import SqliteFeatureRepository
from .tasks import SqliteTaskRepository
from .entities import SqliteEntityRepository
from .requirements import SqliteRequirementRepository
from .plans import SqlitePlanRepository
from .research import SqliteResearchRepository

__all__ = [
    "SqliteProjectRepository",
    "SqliteFeatureRepository",
    "SqliteTaskRepository",
    "SqliteEntityRepository",
    "SqliteRequirementRepository",
    "SqlitePlanRepository",
    "SqliteResearchRepository",
]
