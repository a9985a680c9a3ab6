"""Parse ``data-model.md`` documents into entities with attributes and relationships."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from specdash.models import (
    EntityAttribute,
    EntityRelationship,
    ParsedDataModel,
    ParsedEntity,
)
from specdash.parsers.blocks import Block, BlockKind, parse_document

_ATTRIBUTE_RE = re.compile(
    r"^(?P<name>[^(:]+?)\s*(?:\((?P<type>[^)]*)\))?\s*(?::\s*(?P<rest>.*))?$",
    re.DOTALL,
)
_RELATIONSHIP_TARGET_RE = re.compile(
    r"\b(?:has|belongs|references)\s+(?:many|one|to)?\s*(\w+)",
    re.IGNORECASE,
)
_BOLD_LABEL_RE = re.compile(r"^\*\*([^*]+)\*\*:?\s*$")

DEFAULT_ATTRIBUTE_TYPE = "string"

ATTRIBUTES = "attributes"
RELATIONSHIPS = "relationships"


class DataModelSection(str, Enum):
    NONE = ""
    OVERVIEW = "overview"
    RELATIONSHIPS = "relationships"
    ENTITY = "entity"


@dataclass
class _Cursor:
    section: DataModelSection = DataModelSection.NONE
    entity: Optional[ParsedEntity] = None
    sub_section: str = ""


def parse_relation_type(text: str) -> str:
    if "1:N" in text or "one-to-many" in text:
        return "1:N"
    if "N:1" in text or "many-to-one" in text:
        return "N:1"
    if "N:N" in text or "many-to-many" in text:
        return "N:N"
    return "1:1"


def _classify_sub_section(text: str) -> str:
    lowered = text.lower()
    if "attribute" in lowered or "field" in lowered or "column" in lowered:
        return ATTRIBUTES
    if "relationship" in lowered or "association" in lowered:
        return RELATIONSHIPS
    return text.strip()


def parse_attribute(item: str) -> EntityAttribute | None:
    """Parse ``name (type, constraint): more constraints``."""
    match = _ATTRIBUTE_RE.match(item.strip())
    if not match:
        return None
    name = match.group("name").strip().strip("`")
    if not name:
        return None

    type_parts = [part.strip() for part in (match.group("type") or "").split(",")]
    attr_type = type_parts[0] or DEFAULT_ATTRIBUTE_TYPE
    constraint_parts = [part for part in type_parts[1:] if part]
    rest = (match.group("rest") or "").strip()
    if rest:
        constraint_parts.append(rest)

    return EntityAttribute(
        name=name,
        type=attr_type,
        constraints=", ".join(constraint_parts) or None,
    )


def parse_relationship(item: str) -> EntityRelationship | None:
    match = _RELATIONSHIP_TARGET_RE.search(item)
    if not match:
        return None
    return EntityRelationship(
        target=match.group(1),
        type=parse_relation_type(item),  # type: ignore[arg-type]
        description=item,
    )


def _on_heading(block: Block, cursor: _Cursor, result: ParsedDataModel) -> None:
    text = block.text.strip()
    if block.depth == 2:
        lowered = text.lower()
        cursor.sub_section = ""
        if "overview" in lowered or "summary" in lowered:
            cursor.section = DataModelSection.OVERVIEW
            cursor.entity = None
        elif "relationship" in lowered:
            cursor.section = DataModelSection.RELATIONSHIPS
            cursor.entity = None
        else:
            cursor.section = DataModelSection.ENTITY
            cursor.entity = ParsedEntity(name=text)
            result.entities.append(cursor.entity)
        return
    if block.depth == 3 and cursor.entity is not None:
        cursor.sub_section = _classify_sub_section(text)


def _on_paragraph(block: Block, cursor: _Cursor, result: ParsedDataModel) -> None:
    if cursor.section is DataModelSection.OVERVIEW:
        if result.overview is None:
            result.overview = block.text
        return

    entity = cursor.entity
    if entity is None:
        return

    label = _BOLD_LABEL_RE.match(block.raw.strip())
    if label:
        cursor.sub_section = _classify_sub_section(label.group(1))
        return

    if entity.description is None and not cursor.sub_section:
        entity.description = block.text


def _on_list(block: Block, cursor: _Cursor, result: ParsedDataModel) -> None:
    entity = cursor.entity
    if entity is None:
        return
    items = [item.text.strip() for item in block.items]

    if cursor.sub_section == ATTRIBUTES:
        for item in items:
            attribute = parse_attribute(item)
            if attribute:
                entity.attributes.append(attribute)
    elif cursor.sub_section == RELATIONSHIPS:
        for item in items:
            relationship = parse_relationship(item)
            if relationship:
                entity.relationships.append(relationship)
    elif "validation" in cursor.sub_section.lower():
        entity.validationRules.extend(item for item in items if item)


def _on_table(block: Block, cursor: _Cursor, result: ParsedDataModel) -> None:
    entity = cursor.entity
    if entity is None or cursor.sub_section != ATTRIBUTES:
        return
    for cells in block.cells[1:]:
        if len(cells) < 2:
            continue
        entity.attributes.append(
            EntityAttribute(
                name=cells[0],
                type=cells[1] or DEFAULT_ATTRIBUTE_TYPE,
                constraints=cells[2] if len(cells) > 2 and cells[2] else None,
            )
        )


_TRANSITIONS = {
    BlockKind.HEADING: _on_heading,
    BlockKind.PARAGRAPH: _on_paragraph,
    BlockKind.LIST: _on_list,
    BlockKind.TABLE: _on_table,
}


def parse_data_model_content(content: str) -> ParsedDataModel:
    """Parse data-model.md text into entities."""
    result = ParsedDataModel()
    cursor = _Cursor()
    for block in parse_document(content).blocks:
        handler = _TRANSITIONS.get(block.kind)
        if handler:
            handler(block, cursor, result)
    return result
