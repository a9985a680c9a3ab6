"""Path helpers for the ``specs/NNN-name`` document layout.

Both the sync engine and the file watcher resolve changed paths to their
owning feature through these helpers so they agree on what counts as a
feature directory.
"""
from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from specdash import config

FEATURE_DIR_PATTERN = re.compile(r"^(\d{3})-(.+)$")

DOCUMENT_NAMES = ("spec.md", "tasks.md", "data-model.md", "plan.md", "research.md")


def normalize_path(raw: str | Path) -> str:
    value = str(raw or "").strip()
    return value.replace("\\", "/")


def is_feature_dir_name(name: str) -> bool:
    return bool(FEATURE_DIR_PATTERN.match(name or ""))


def split_feature_dir(name: str) -> tuple[str, str] | None:
    """Split ``003-user-auth`` into ``("003", "user-auth")``."""
    match = FEATURE_DIR_PATTERN.match(name or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def _feature_segment_index(path_value: str | Path) -> tuple[list[str], int] | None:
    parts = list(PurePosixPath(normalize_path(path_value)).parts)
    # The feature directory must be followed by at least one more segment.
    for idx in range(len(parts) - 2, 0, -1):
        if parts[idx - 1] == config.SPECS_DIR_NAME and is_feature_dir_name(parts[idx]):
            return parts, idx
    return None


def feature_dir_from_path(path_value: str | Path) -> str | None:
    """Return the ``NNN-name`` directory owning ``path_value``, if any."""
    found = _feature_segment_index(path_value)
    if not found:
        return None
    parts, idx = found
    return parts[idx]


def feature_number_from_path(path_value: str | Path) -> str | None:
    feature_dir = feature_dir_from_path(path_value)
    if not feature_dir:
        return None
    split = split_feature_dir(feature_dir)
    return split[0] if split else None


def feature_id_from_path(path_value: str | Path) -> int | None:
    number = feature_number_from_path(path_value)
    return int(number) if number else None


def feature_dir_under_root(path_value: str | Path, project_root: str | Path) -> str | None:
    """Return the ``NNN-name`` directory of ``path_value`` below ``<project_root>/specs``.

    Only the segment directly under the project's own specs folder counts, so
    ``specs/NNN-*`` trees nested inside a feature resolve to the outer feature.
    """
    specs_dir = PurePosixPath(normalize_path(project_root)) / config.SPECS_DIR_NAME
    try:
        parts = PurePosixPath(normalize_path(path_value)).relative_to(specs_dir).parts
    except ValueError:
        return None
    if len(parts) < 2 or not is_feature_dir_name(parts[0]):
        return None
    return parts[0]
