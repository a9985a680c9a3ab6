"""Database schema creation and versioning.

All CREATE TABLE statements for the document mirror.
Uses IF NOT EXISTS for idempotent runs.
"""
from __future__ import annotations

import logging

import aiosqlite

logger = logging.getLogger("specdash.db")

SCHEMA_VERSION = 1

_TABLES = """
-- ── Schema version tracking ────────────────────────────────────────
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TEXT NOT NULL DEFAULT (datetime('now'))
);

-- ── 1. Projects ────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS projects (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT NOT NULL,
    root_path      TEXT NOT NULL UNIQUE,
    last_opened_at TEXT NOT NULL,
    created_at     TEXT NOT NULL
);

-- ── 2. Features (one per specs/NNN-name directory) ─────────────────
CREATE TABLE IF NOT EXISTS features (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id          INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    feature_number      TEXT NOT NULL,
    feature_name        TEXT NOT NULL,
    feature_dir         TEXT DEFAULT '',
    title               TEXT,
    status              TEXT NOT NULL DEFAULT 'draft'
                        CHECK(status IN ('draft', 'approved', 'in_progress', 'complete')),
    spec_path           TEXT NOT NULL,
    priority            TEXT,
    created_date        TEXT,
    task_completion_pct REAL DEFAULT 0.0,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    UNIQUE(project_id, feature_number)
);

CREATE INDEX IF NOT EXISTS idx_features_project ON features(project_id);
CREATE INDEX IF NOT EXISTS idx_features_status  ON features(status);

-- ── 3. Tasks (tasks.md, replaced per sync) ─────────────────────────
CREATE TABLE IF NOT EXISTS tasks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_id   INTEGER NOT NULL REFERENCES features(id) ON DELETE CASCADE,
    task_id      TEXT NOT NULL,
    description  TEXT NOT NULL,
    status       TEXT NOT NULL DEFAULT 'not_started'
                 CHECK(status IN ('not_started', 'in_progress', 'done')),
    phase        TEXT,
    phase_order  INTEGER DEFAULT 0,
    is_parallel  INTEGER DEFAULT 0,
    dependencies TEXT DEFAULT '[]',
    story_label  TEXT,
    file_path    TEXT,
    line_number  INTEGER,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    UNIQUE(feature_id, task_id)
);

CREATE INDEX IF NOT EXISTS idx_tasks_feature ON tasks(feature_id);
CREATE INDEX IF NOT EXISTS idx_tasks_status  ON tasks(status);

-- ── 4. Entities (data-model.md, merged per sync) ───────────────────
CREATE TABLE IF NOT EXISTS entities (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_id       INTEGER NOT NULL REFERENCES features(id) ON DELETE CASCADE,
    entity_name      TEXT NOT NULL,
    description      TEXT,
    attributes       TEXT DEFAULT '[]',
    relationships    TEXT DEFAULT '[]',
    validation_rules TEXT DEFAULT '[]',
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL,
    UNIQUE(feature_id, entity_name)
);

CREATE INDEX IF NOT EXISTS idx_entities_feature ON entities(feature_id);

-- ── 5. Requirements (spec.md, replaced per sync) ───────────────────
CREATE TABLE IF NOT EXISTS requirements (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_id          INTEGER NOT NULL REFERENCES features(id) ON DELETE CASCADE,
    requirement_id      TEXT NOT NULL,
    type                TEXT NOT NULL DEFAULT 'functional'
                        CHECK(type IN ('functional', 'non_functional', 'constraint')),
    description         TEXT NOT NULL,
    priority            TEXT,
    linked_tasks        TEXT DEFAULT '[]',
    acceptance_criteria TEXT DEFAULT '[]',
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    UNIQUE(feature_id, requirement_id)
);

CREATE INDEX IF NOT EXISTS idx_requirements_feature ON requirements(feature_id);

-- ── 6. Plans (plan.md, singleton per feature) ──────────────────────
CREATE TABLE IF NOT EXISTS plans (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_id   INTEGER NOT NULL UNIQUE REFERENCES features(id) ON DELETE CASCADE,
    summary      TEXT,
    tech_stack   TEXT DEFAULT '{}',
    phases       TEXT DEFAULT '[]',
    dependencies TEXT DEFAULT '[]',
    risks        TEXT DEFAULT '[]',
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);

-- ── 7. Research decisions (research.md, merged per sync) ───────────
CREATE TABLE IF NOT EXISTS research_decisions (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_id   INTEGER NOT NULL REFERENCES features(id) ON DELETE CASCADE,
    title        TEXT NOT NULL,
    decision     TEXT NOT NULL,
    rationale    TEXT,
    alternatives TEXT DEFAULT '[]',
    context      TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    UNIQUE(feature_id, title)
);

CREATE INDEX IF NOT EXISTS idx_research_feature ON research_decisions(feature_id);
"""


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Create all tables. Idempotent."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cur:
            row = await cur.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.Error:
        current_version = 0

    if current_version >= SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current_version})")
        return

    logger.info(f"Running migrations: {current_version} → {SCHEMA_VERSION}")

    await db.executescript(_TABLES)

    await db.execute(
        "INSERT INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    await db.commit()
    logger.info(f"Migrations complete, schema version {SCHEMA_VERSION}")
