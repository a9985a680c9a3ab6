"""Parse ``research.md`` notes into research decisions.

Layout handled::

    ## Phase 0: Research
    ### 1. Storage engine
    #### Decision
    ...paragraphs...
    #### Rationale
    #### Alternatives Considered
    - **Postgres**: heavier to operate

Paragraphs are buffered while a sub-section is open and flushed into the
matching field when the next sub-section, decision or document end arrives.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from specdash.models import ParsedDecision, ParsedResearch
from specdash.parsers.blocks import Block, BlockKind, parse_document, strip_inline

_ORDINAL_PREFIX_RE = re.compile(r"^\d+\.\s*")
_ALTERNATIVE_ITEM_RE = re.compile(r"^\*\*([^*]+)\*\*:\s*(.*)", re.DOTALL)
_LABEL_START_RE = re.compile(r"^\*\*(decision|rationale|alternatives?[^*]*)\*\*:", re.IGNORECASE)
_LABEL_RUN_RE = re.compile(
    r"\*\*(decision|rationale|alternatives?[^*]*)\*\*:\s*(.*?)(?=\n\*\*[^*\n]+\*\*:|\Z)",
    re.IGNORECASE | re.DOTALL,
)


class ResearchField(str, Enum):
    NONE = ""
    LEAD = "lead"
    DECISION = "decision"
    RATIONALE = "rationale"
    ALTERNATIVES = "alternatives"
    CONTEXT = "context"


@dataclass
class _Cursor:
    in_region: bool = False
    decision: Optional[ParsedDecision] = None
    target: ResearchField = ResearchField.NONE
    buffer: list[str] = field(default_factory=list)


def _classify_field(heading_text: str) -> ResearchField:
    lowered = heading_text.lower()
    if "decision" in lowered:
        return ResearchField.DECISION
    if "rationale" in lowered or "why" in lowered:
        return ResearchField.RATIONALE
    if "alternative" in lowered:
        return ResearchField.ALTERNATIVES
    if any(word in lowered for word in ("implementation", "approach", "context", "background")):
        return ResearchField.CONTEXT
    return ResearchField.NONE


def _flush_buffer(cursor: _Cursor) -> None:
    decision = cursor.decision
    if decision is None or not cursor.buffer:
        cursor.buffer = []
        return
    content = "\n\n".join(cursor.buffer)
    if cursor.target in (ResearchField.LEAD, ResearchField.DECISION):
        if not decision.decision:
            decision.decision = content
    elif cursor.target is ResearchField.RATIONALE:
        decision.rationale = content
    elif cursor.target is ResearchField.CONTEXT:
        decision.context = content
    cursor.buffer = []


def _close_decision(cursor: _Cursor, result: ParsedResearch) -> None:
    if cursor.decision is None:
        return
    _flush_buffer(cursor)
    result.decisions.append(cursor.decision)
    cursor.decision = None
    cursor.target = ResearchField.NONE


def _alternative_text(raw: str, fallback: str) -> str:
    match = _ALTERNATIVE_ITEM_RE.match(raw.strip())
    if match:
        return f"{strip_inline(match.group(1)).strip()}: {strip_inline(match.group(2)).strip()}"
    return fallback


def _apply_labels(raw: str, cursor: _Cursor) -> None:
    decision = cursor.decision
    if decision is None:
        return
    cursor.target = ResearchField.NONE
    for match in _LABEL_RUN_RE.finditer(raw):
        label = match.group(1).lower()
        value = strip_inline(match.group(2)).strip()
        if label == "decision":
            decision.decision = value
        elif label == "rationale":
            decision.rationale = value
        else:
            if value:
                decision.alternatives.append(value)
            cursor.target = ResearchField.ALTERNATIVES


def _on_heading(block: Block, cursor: _Cursor, result: ParsedResearch) -> None:
    text = block.text.strip()
    if block.depth == 2:
        _close_decision(cursor, result)
        lowered = text.lower()
        cursor.in_region = "phase" in lowered or "research" in lowered
        return
    if block.depth == 3:
        if not cursor.in_region:
            return
        _close_decision(cursor, result)
        cursor.decision = ParsedDecision(title=_ORDINAL_PREFIX_RE.sub("", text).strip())
        cursor.target = ResearchField.LEAD
        cursor.buffer = []
        return
    if block.depth >= 4 and cursor.decision is not None:
        _flush_buffer(cursor)
        cursor.target = _classify_field(text)


def _on_paragraph(block: Block, cursor: _Cursor, result: ParsedResearch) -> None:
    decision = cursor.decision
    if decision is None:
        return
    if _LABEL_START_RE.match(block.raw):
        _flush_buffer(cursor)
        _apply_labels(block.raw, cursor)
        return
    if cursor.target is ResearchField.LEAD:
        if not cursor.buffer and not decision.decision:
            cursor.buffer.append(block.text)
    elif cursor.target is not ResearchField.NONE:
        cursor.buffer.append(block.text)


def _on_list(block: Block, cursor: _Cursor, result: ParsedResearch) -> None:
    decision = cursor.decision
    if decision is None:
        return
    if cursor.target is ResearchField.ALTERNATIVES:
        for item in block.items:
            decision.alternatives.append(_alternative_text(item.raw, item.text.strip()))
    elif cursor.target not in (ResearchField.NONE, ResearchField.LEAD):
        cursor.buffer.append("\n".join(f"- {item.text.strip()}" for item in block.items))


def _on_code(block: Block, cursor: _Cursor, result: ParsedResearch) -> None:
    if cursor.decision is not None and cursor.target is ResearchField.CONTEXT:
        cursor.buffer.append(f"```\n{block.raw}\n```")


_TRANSITIONS = {
    BlockKind.HEADING: _on_heading,
    BlockKind.PARAGRAPH: _on_paragraph,
    BlockKind.LIST: _on_list,
    BlockKind.CODE: _on_code,
}


def parse_research_content(content: str) -> ParsedResearch:
    """Parse research.md text into decisions."""
    result = ParsedResearch()
    cursor = _Cursor()
    for block in parse_document(content).blocks:
        handler = _TRANSITIONS.get(block.kind)
        if handler:
            handler(block, cursor, result)
    _close_decision(cursor, result)
    return result
