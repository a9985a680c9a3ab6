"""Pydantic models shared by the parsers, the sync engine and the API."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

FeatureStatus = Literal["draft", "approved", "in_progress", "complete"]
TaskStatus = Literal["not_started", "in_progress", "done"]
RequirementType = Literal["functional", "non_functional", "constraint"]
Cardinality = Literal["1:1", "1:N", "N:1", "N:N"]
ChangeKind = Literal["add", "change", "unlink"]


# ── Spec documents ─────────────────────────────────────────────────

class ParsedUserStory(BaseModel):
    title: str
    priority: str = "P2"
    description: str = ""
    acceptanceScenarios: list[str] = Field(default_factory=list)


class ParsedRequirement(BaseModel):
    id: str
    description: str = ""
    priority: Optional[str] = None


class ParsedSpec(BaseModel):
    title: Optional[str] = None
    status: FeatureStatus = "draft"
    createdDate: Optional[str] = None
    featureBranch: Optional[str] = None
    userStories: list[ParsedUserStory] = Field(default_factory=list)
    requirements: list[ParsedRequirement] = Field(default_factory=list)


# ── Task lists ─────────────────────────────────────────────────────

class ParsedTask(BaseModel):
    taskId: str
    description: str = ""
    status: TaskStatus = "not_started"
    phase: Optional[str] = None
    phaseOrder: int = 0
    isParallel: bool = False
    dependencies: list[str] = Field(default_factory=list)
    storyLabel: Optional[str] = None
    filePath: Optional[str] = None
    lineNumber: int = 0


class ParsedTasks(BaseModel):
    title: Optional[str] = None
    tasks: list[ParsedTask] = Field(default_factory=list)
    phaseNames: list[str] = Field(default_factory=list)


# ── Data models ────────────────────────────────────────────────────

class EntityAttribute(BaseModel):
    name: str
    type: str = "string"
    constraints: Optional[str] = None


class EntityRelationship(BaseModel):
    target: str
    type: Cardinality = "1:1"
    description: Optional[str] = None


class ParsedEntity(BaseModel):
    name: str
    description: Optional[str] = None
    attributes: list[EntityAttribute] = Field(default_factory=list)
    relationships: list[EntityRelationship] = Field(default_factory=list)
    validationRules: list[str] = Field(default_factory=list)


class ParsedDataModel(BaseModel):
    overview: Optional[str] = None
    entities: list[ParsedEntity] = Field(default_factory=list)


# ── Plans ──────────────────────────────────────────────────────────

class PlanPhase(BaseModel):
    name: str
    goal: str = ""
    order: int = 0
    tasks: list[str] = Field(default_factory=list)


class PlanRisk(BaseModel):
    risk: str
    mitigation: str = ""


class ParsedPlan(BaseModel):
    summary: Optional[str] = None
    techStack: dict[str, str] = Field(default_factory=dict)
    phases: list[PlanPhase] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    risks: list[PlanRisk] = Field(default_factory=list)


# ── Research notes ─────────────────────────────────────────────────

class ParsedDecision(BaseModel):
    title: str
    decision: str = ""
    rationale: Optional[str] = None
    alternatives: list[str] = Field(default_factory=list)
    context: Optional[str] = None


class ParsedResearch(BaseModel):
    decisions: list[ParsedDecision] = Field(default_factory=list)


# ── Stored records (API responses) ─────────────────────────────────

class Project(BaseModel):
    id: int
    name: str
    rootPath: str
    createdAt: str = ""
    lastOpenedAt: str = ""


class Feature(BaseModel):
    id: int
    projectId: int
    featureNumber: str
    featureName: str
    title: Optional[str] = None
    status: FeatureStatus = "draft"
    specPath: str = ""
    priority: Optional[str] = None
    createdDate: Optional[str] = None
    taskCompletionPct: float = 0.0
    updatedAt: str = ""


class Task(BaseModel):
    id: int
    featureId: int
    taskId: str
    description: str = ""
    status: TaskStatus = "not_started"
    phase: Optional[str] = None
    phaseOrder: int = 0
    isParallel: bool = False
    dependencies: list[str] = Field(default_factory=list)
    storyLabel: Optional[str] = None
    filePath: Optional[str] = None
    lineNumber: Optional[int] = None


class Entity(BaseModel):
    id: int
    featureId: int
    name: str
    description: Optional[str] = None
    attributes: list[EntityAttribute] = Field(default_factory=list)
    relationships: list[EntityRelationship] = Field(default_factory=list)
    validationRules: list[str] = Field(default_factory=list)


class Requirement(BaseModel):
    id: int
    featureId: int
    requirementId: str
    description: str = ""
    type: RequirementType = "functional"
    priority: Optional[str] = None
    linkedTasks: list[str] = Field(default_factory=list)
    acceptanceCriteria: list[str] = Field(default_factory=list)


class Plan(BaseModel):
    id: int
    featureId: int
    summary: Optional[str] = None
    techStack: dict[str, str] = Field(default_factory=dict)
    phases: list[PlanPhase] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    risks: list[PlanRisk] = Field(default_factory=list)


class ResearchDecision(BaseModel):
    id: int
    featureId: int
    title: str
    decision: str = ""
    rationale: Optional[str] = None
    alternatives: list[str] = Field(default_factory=list)
    context: Optional[str] = None


# ── Sync / watcher payloads ────────────────────────────────────────

class SyncResult(BaseModel):
    synced: int = 0
    errors: list[str] = Field(default_factory=list)


class FileChangeEvent(BaseModel):
    eventKind: ChangeKind
    path: str
    featureId: Optional[int] = None
