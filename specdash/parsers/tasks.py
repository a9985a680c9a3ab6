"""Parse ``tasks.md`` checklists into ``ParsedTask`` records.

This parser is line based rather than block based because checkbox task
syntax is anchored to single lines and the source line number is kept for
traceability.
"""
from __future__ import annotations

import re

from specdash.models import ParsedTask, ParsedTasks

_TITLE_RE = re.compile(r"^#\s+")
_PHASE_HEADING_RE = re.compile(r"^##\s+Phase\s+\d+", re.IGNORECASE)
_PHASE_PREFIX_RE = re.compile(r"^##\s+")
_CHECKBOX_RE = re.compile(r"^\s*-\s*\[[x/\s]?\]", re.IGNORECASE)
_DONE_RE = re.compile(r"^\s*-\s*\[x\]", re.IGNORECASE)
_IN_PROGRESS_RE = re.compile(r"^\s*-\s*\[/\]")
_TASK_ID_RE = re.compile(r"\b(T\d{3})\b", re.IGNORECASE)
_STORY_LABEL_RE = re.compile(r"\[(US\d+)\]", re.IGNORECASE)
_PARALLEL_RE = re.compile(r"\[P\]")
_FILE_PATH_RE = re.compile(r"`([^`]+\.[a-z]+)`", re.IGNORECASE)
_DEPENDENCY_PHRASE_RE = re.compile(
    r"\b(?:depends\s+on|after|blocked\s+by|deps?:)\s*(T\d{3}(?:\s*(?:,|and|&)\s*T\d{3})*)",
    re.IGNORECASE,
)

_STRIP_CHECKBOX_RE = re.compile(r"^\s*-\s*\[[x/\s]?\]\s*", re.IGNORECASE)
_STRIP_TASK_ID_RE = re.compile(r"\bT\d{3}\b", re.IGNORECASE)
_STRIP_STORY_RE = re.compile(r"\[US\d+\]", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"[ \t]{2,}")


def _checkbox_status(line: str) -> str:
    if _DONE_RE.match(line):
        return "done"
    if _IN_PROGRESS_RE.match(line):
        return "in_progress"
    return "not_started"


def _extract_dependencies(line: str, own_id: str) -> list[str]:
    deps: list[str] = []
    for match in _DEPENDENCY_PHRASE_RE.finditer(line):
        for token in _TASK_ID_RE.findall(match.group(1)):
            token = token.upper()
            if token != own_id and token not in deps:
                deps.append(token)
    return deps


def _clean_description(line: str) -> str:
    text = _STRIP_CHECKBOX_RE.sub("", line)
    text = _STRIP_TASK_ID_RE.sub("", text, count=1)
    text = _PARALLEL_RE.sub("", text)
    text = _STRIP_STORY_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_tasks_content(content: str) -> ParsedTasks:
    """Parse tasks.md text into tasks grouped by phase."""
    result = ParsedTasks()
    current_phase: str | None = None
    phase_order = 0

    for index, line in enumerate((content or "").splitlines()):
        line_number = index + 1

        if result.title is None and _TITLE_RE.match(line):
            result.title = _TITLE_RE.sub("", line).strip()
            continue

        if _PHASE_HEADING_RE.match(line):
            current_phase = _PHASE_PREFIX_RE.sub("", line).strip()
            phase_order += 1
            result.phaseNames.append(current_phase)
            continue

        if not _CHECKBOX_RE.match(line):
            continue

        id_match = _TASK_ID_RE.search(line)
        if not id_match:
            continue
        task_id = id_match.group(1).upper()
        path_match = _FILE_PATH_RE.search(line)
        story_match = _STORY_LABEL_RE.search(line)

        result.tasks.append(
            ParsedTask(
                taskId=task_id,
                description=_clean_description(line),
                status=_checkbox_status(line),
                phase=current_phase,
                phaseOrder=phase_order,
                isParallel=bool(_PARALLEL_RE.search(line)),
                dependencies=_extract_dependencies(line, task_id),
                storyLabel=story_match.group(1).upper() if story_match else None,
                filePath=path_match.group(1) if path_match else None,
                lineNumber=line_number,
            )
        )

    return result
