"""Parse ``plan.md`` implementation plans."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from specdash.models import ParsedPlan, PlanPhase, PlanRisk
from specdash.parsers.blocks import Block, BlockKind, parse_document, strip_inline

_KEY_VALUE_RE = re.compile(r"\*\*([^*]+)\*\*:\s*([^\n]+)")
# The first hyphen, en dash or colon separates a risk from its mitigation.
_RISK_DELIMITER_RE = re.compile(r"\s*[-–:]\s*")


class PlanSection(str, Enum):
    NONE = ""
    SUMMARY = "summary"
    TECH_STACK = "techStack"
    PHASE = "phase"
    DEPENDENCIES = "dependencies"
    RISKS = "risks"


@dataclass
class _Cursor:
    section: PlanSection = PlanSection.NONE
    phase: Optional[PlanPhase] = None


def _classify_section(heading_text: str) -> PlanSection:
    lowered = heading_text.lower()
    if "summary" in lowered:
        return PlanSection.SUMMARY
    if "technical context" in lowered or "tech" in lowered:
        return PlanSection.TECH_STACK
    if "phase" in lowered:
        return PlanSection.PHASE
    if "dependencies" in lowered:
        return PlanSection.DEPENDENCIES
    if "risk" in lowered:
        return PlanSection.RISKS
    return PlanSection.NONE


def extract_key_values(raw: str) -> dict[str, str]:
    """Collect every ``**Key**: value`` run in a markdown fragment."""
    pairs: dict[str, str] = {}
    for match in _KEY_VALUE_RE.finditer(raw or ""):
        key = strip_inline(match.group(1)).strip().rstrip(":")
        value = strip_inline(match.group(2)).strip()
        if key and value:
            pairs[key] = value
    return pairs


def split_risk(item: str) -> PlanRisk | None:
    parts = _RISK_DELIMITER_RE.split(item.strip(), maxsplit=1)
    if len(parts) < 2:
        return None
    return PlanRisk(risk=parts[0].strip(), mitigation=parts[1].strip())


def _on_heading(block: Block, cursor: _Cursor, result: ParsedPlan) -> None:
    if block.depth != 2:
        return
    cursor.section = _classify_section(block.text)
    cursor.phase = None
    if cursor.section is PlanSection.PHASE:
        cursor.phase = PlanPhase(name=block.text.strip(), order=len(result.phases) + 1)
        result.phases.append(cursor.phase)


def _on_paragraph(block: Block, cursor: _Cursor, result: ParsedPlan) -> None:
    if cursor.section is PlanSection.SUMMARY:
        if not result.summary:
            result.summary = block.text
    elif cursor.section is PlanSection.PHASE and cursor.phase is not None:
        if not cursor.phase.goal:
            cursor.phase.goal = block.text
    elif cursor.section is PlanSection.TECH_STACK:
        result.techStack.update(extract_key_values(block.raw))


def _on_list(block: Block, cursor: _Cursor, result: ParsedPlan) -> None:
    items = [item.text.strip() for item in block.items]
    if cursor.section is PlanSection.PHASE and cursor.phase is not None:
        cursor.phase.tasks.extend(items)
    elif cursor.section is PlanSection.DEPENDENCIES:
        result.dependencies.extend(items)
    elif cursor.section is PlanSection.RISKS:
        for item in items:
            risk = split_risk(item)
            if risk:
                result.risks.append(risk)
    elif cursor.section is PlanSection.TECH_STACK:
        for item in block.items:
            result.techStack.update(extract_key_values(item.raw))


_TRANSITIONS = {
    BlockKind.HEADING: _on_heading,
    BlockKind.PARAGRAPH: _on_paragraph,
    BlockKind.LIST: _on_list,
}


def parse_plan_content(content: str) -> ParsedPlan:
    """Parse plan.md text into summary, tech stack, phases, dependencies and risks."""
    result = ParsedPlan()
    cursor = _Cursor()
    for block in parse_document(content).blocks:
        handler = _TRANSITIONS.get(block.kind)
        if handler:
            handler(block, cursor, result)
    return result
