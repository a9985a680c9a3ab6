"""Parse ``spec.md`` feature specifications into a ``ParsedSpec``."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from specdash.models import ParsedRequirement, ParsedSpec, ParsedUserStory
from specdash.parsers.blocks import Block, BlockKind, parse_document, strip_inline

_TITLE_PREFIX_RE = re.compile(r"^Feature Specification:\s*", re.IGNORECASE)
_PRIORITY_RE = re.compile(r"\(Priority:\s*(P[123])\)", re.IGNORECASE)
_PRIORITY_SUFFIX_RE = re.compile(r"\s*\(Priority:.*\)", re.IGNORECASE)
_REQUIREMENT_ID_RE = re.compile(r"^(FR-\d+|NFR-\d+)", re.IGNORECASE)
_REQUIREMENT_SEPARATOR_RE = re.compile(r"^[:\s-]+")

_STATUS_LABEL_RE = re.compile(r"\*\*Status:?\*\*:?[ \t]*([^\n]+)", re.IGNORECASE)
_CREATED_LABEL_RE = re.compile(r"\*\*Created:?\*\*:?[ \t]*([\d-]+)", re.IGNORECASE)
_BRANCH_LABEL_RE = re.compile(r"\*\*Feature Branch:?\*\*:?[ \t]*`?([^`\n]+)`?", re.IGNORECASE)

_NORMALIZED_STATUS = {
    "draft": "draft",
    "planning": "draft",
    "pending": "draft",
    "approved": "approved",
    "accepted": "approved",
    "ready": "approved",
    "in progress": "in_progress",
    "in-progress": "in_progress",
    "in_progress": "in_progress",
    "active": "in_progress",
    "implementing": "in_progress",
    "complete": "complete",
    "completed": "complete",
    "done": "complete",
    "implemented": "complete",
}


class SpecSection(str, Enum):
    NONE = ""
    USER_STORIES = "userStories"
    REQUIREMENTS = "requirements"


@dataclass
class _Cursor:
    section: SpecSection = SpecSection.NONE
    story: Optional[ParsedUserStory] = None


def normalize_feature_status(raw: str) -> str | None:
    """Map a free-form status value onto the feature status enum.

    Returns ``None`` when the value is not recognised so callers keep the
    previous value.
    """
    token = strip_inline(raw or "").strip().strip(".").lower()
    if not token:
        return None
    if token in _NORMALIZED_STATUS:
        return _NORMALIZED_STATUS[token]
    first_word = re.split(r"[\s(,;]", token, maxsplit=1)[0]
    return _NORMALIZED_STATUS.get(first_word)


def _classify_section(heading_text: str) -> SpecSection:
    lowered = heading_text.lower()
    if "user" in lowered and "scenario" in lowered:
        return SpecSection.USER_STORIES
    if "requirement" in lowered:
        return SpecSection.REQUIREMENTS
    return SpecSection.NONE


def _apply_metadata(block: Block, result: ParsedSpec) -> None:
    # Later matches overwrite earlier ones: the scan is linear.
    for match in _STATUS_LABEL_RE.finditer(block.raw):
        status = normalize_feature_status(match.group(1))
        if status:
            result.status = status  # type: ignore[assignment]
    for match in _CREATED_LABEL_RE.finditer(block.raw):
        result.createdDate = match.group(1)
    for match in _BRANCH_LABEL_RE.finditer(block.raw):
        result.featureBranch = match.group(1).strip()


def _on_heading(block: Block, cursor: _Cursor, result: ParsedSpec) -> None:
    if block.depth == 1:
        result.title = _TITLE_PREFIX_RE.sub("", block.text).strip()
        return
    if block.depth == 2:
        cursor.section = _classify_section(block.text)
        cursor.story = None
        return
    if block.depth == 3 and cursor.section is SpecSection.USER_STORIES:
        text = block.text
        priority = _PRIORITY_RE.search(text)
        cursor.story = ParsedUserStory(
            title=_PRIORITY_SUFFIX_RE.sub("", text).strip(),
            priority=priority.group(1).upper() if priority else "P2",
        )
        result.userStories.append(cursor.story)


def _on_paragraph(block: Block, cursor: _Cursor, result: ParsedSpec) -> None:
    _apply_metadata(block, result)
    story = cursor.story
    if story is None or cursor.section is not SpecSection.USER_STORIES:
        return
    if not story.description and not block.raw.startswith("**"):
        story.description = block.text


def _on_list(block: Block, cursor: _Cursor, result: ParsedSpec) -> None:
    if cursor.section is SpecSection.USER_STORIES and cursor.story is not None:
        cursor.story.acceptanceScenarios.extend(item.text.strip() for item in block.items)
        return
    if cursor.section is not SpecSection.REQUIREMENTS:
        return
    for item in block.items:
        text = item.text.strip()
        match = _REQUIREMENT_ID_RE.match(text)
        if not match:
            continue
        description = _REQUIREMENT_SEPARATOR_RE.sub("", text[match.end():]).strip()
        result.requirements.append(
            ParsedRequirement(id=match.group(1).upper(), description=description)
        )


_TRANSITIONS = {
    BlockKind.HEADING: _on_heading,
    BlockKind.PARAGRAPH: _on_paragraph,
    BlockKind.LIST: _on_list,
}


def parse_spec_content(content: str) -> ParsedSpec:
    """Parse spec.md text. Never raises for malformed markdown."""
    document = parse_document(content)
    result = ParsedSpec()

    fm = document.frontmatter
    if fm.get("title"):
        result.title = str(fm["title"]).strip()
    fm_status = normalize_feature_status(str(fm.get("status") or ""))
    if fm_status:
        result.status = fm_status  # type: ignore[assignment]
    if fm.get("created"):
        result.createdDate = str(fm["created"])

    cursor = _Cursor()
    for block in document.blocks:
        handler = _TRANSITIONS.get(block.kind)
        if handler:
            handler(block, cursor, result)
    return result
