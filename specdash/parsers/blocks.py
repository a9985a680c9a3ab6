"""Tokenize markdown text into a flat sequence of typed blocks.

Every document parser works on the ``Block`` sequence produced here instead
of raw characters. Only this module knows about heading markers, list
bullets, table pipes and code fences.

Each block keeps its ``raw`` source (inline markup intact, so leaf patterns
such as ``**Status**:`` can still be matched) and exposes a lazily computed
``text`` with inline formatting stripped.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Optional

import yaml


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    CODE = "code"
    QUOTE = "quote"
    HTML = "html"


_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
_HEADING_RE = re.compile(r"^\s{0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE_RE = re.compile(r"^(\s{0,3})(`{3,}|~{3,})\s*([^`\s]*)")
_THEMATIC_BREAK_RE = re.compile(r"^\s{0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_LIST_ITEM_RE = re.compile(r"^(\s*)([-*+]|\d{1,9}[.)])(?:[ \t]+(.*))?$")
_QUOTE_RE = re.compile(r"^\s{0,3}>\s?(.*)$")
_TABLE_DELIMITER_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")
_CHECKBOX_RE = re.compile(r"^\[([ xX])\][ \t]+")

# Inline markup, applied outside code spans only.
_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1", re.DOTALL)
_ESCAPE_RE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!|>~])")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REF_LINK_RE = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
_AUTOLINK_RE = re.compile(r"<((?:https?|mailto):[^>\s]+)>")
_STRONG_RE = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1", re.DOTALL)
_EM_STAR_RE = re.compile(r"(?<![*\w])\*(?=[^\s*])(.+?)(?<=[^\s*])\*(?![*\w])", re.DOTALL)
_EM_UNDERSCORE_RE = re.compile(r"(?<![_\w])_(?=[^\s_])(.+?)(?<=[^\s_])_(?![_\w])", re.DOTALL)
_STRIKE_RE = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~", re.DOTALL)
_HARD_BREAK_RE = re.compile(r"(?:[ \t]{2,}|\\)$", re.MULTILINE)

_ESCAPE_BASE = 0xE000


def _strip_emphasis(segment: str) -> str:
    segment = _IMAGE_RE.sub(r"\1", segment)
    segment = _LINK_RE.sub(r"\1", segment)
    segment = _REF_LINK_RE.sub(r"\1", segment)
    segment = _AUTOLINK_RE.sub(r"\1", segment)
    # Nested strong/emphasis unwraps from the outside in.
    previous = None
    while previous != segment:
        previous = segment
        segment = _STRONG_RE.sub(r"\2", segment)
        segment = _STRIKE_RE.sub(r"\1", segment)
        segment = _EM_STAR_RE.sub(r"\1", segment)
        segment = _EM_UNDERSCORE_RE.sub(r"\1", segment)
    return segment


def strip_inline(raw: str) -> str:
    """Return the plain text of an inline markdown fragment."""
    if not raw:
        return ""
    text = _HARD_BREAK_RE.sub("", raw)
    # Escaped characters are parked in the private use area so emphasis
    # patterns never see them.
    text = _ESCAPE_RE.sub(lambda m: chr(_ESCAPE_BASE + ord(m.group(1))), text)

    pieces: list[str] = []
    cursor = 0
    for match in _CODE_SPAN_RE.finditer(text):
        pieces.append(_strip_emphasis(text[cursor:match.start()]))
        pieces.append(match.group(2).strip())
        cursor = match.end()
    pieces.append(_strip_emphasis(text[cursor:]))

    joined = "".join(pieces)
    joined = re.sub(
        "[\ue000-\ue0ff]",
        lambda m: chr(ord(m.group(0)) - _ESCAPE_BASE),
        joined,
    )
    return "\n".join(line.strip() for line in joined.split("\n")).strip()


@dataclass
class ListItem:
    raw: str
    checked: Optional[bool] = None

    @cached_property
    def text(self) -> str:
        lines = []
        for line in self.raw.split("\n"):
            match = _LIST_ITEM_RE.match(line)
            if match and match.group(3) is not None:
                line = match.group(3)
            lines.append(line)
        return strip_inline("\n".join(lines))


@dataclass
class Block:
    kind: BlockKind
    raw: str = ""
    depth: int = 0
    line: int = 0
    ordered: bool = False
    language: str = ""
    items: list[ListItem] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def is_heading(self, depth: int | None = None) -> bool:
        if self.kind is not BlockKind.HEADING:
            return False
        return depth is None or self.depth == depth

    @cached_property
    def cells(self) -> list[list[str]]:
        return [[strip_inline(cell) for cell in row] for row in self.rows]

    @cached_property
    def text(self) -> str:
        if self.kind is BlockKind.LIST:
            return "\n".join(item.text for item in self.items)
        if self.kind is BlockKind.TABLE:
            return "\n".join(" | ".join(row) for row in self.cells)
        if self.kind in (BlockKind.CODE, BlockKind.HTML):
            return self.raw
        return strip_inline(self.raw)


@dataclass
class Document:
    blocks: list[Block] = field(default_factory=list)
    frontmatter: dict[str, Any] = field(default_factory=dict)


def _extract_frontmatter(text: str) -> tuple[dict[str, Any], str, int]:
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text, 0
    try:
        fm = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        fm = {}
    if not isinstance(fm, dict):
        fm = {}
    consumed = match.group(0)
    return fm, text[len(consumed):], consumed.count("\n")


def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip(" "))


def _split_table_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells = re.split(r"(?<!\\)\|", row)
    return [cell.strip().replace("\\|", "|") for cell in cells]


class _Tokenizer:
    """Single pass over the document lines, one block per ``_next`` call."""

    def __init__(self, lines: list[str], line_offset: int):
        self.lines = lines
        self.offset = line_offset
        self.pos = 0

    def _peek(self, pos: int) -> str | None:
        return self.lines[pos] if 0 <= pos < len(self.lines) else None

    def _starts_table(self, pos: int) -> bool:
        line = self._peek(pos)
        delimiter = self._peek(pos + 1)
        if line is None or delimiter is None:
            return False
        return "|" in line and "|" in delimiter and bool(_TABLE_DELIMITER_RE.match(delimiter))

    def _interrupts_paragraph(self, pos: int) -> bool:
        line = self.lines[pos]
        if not line.strip():
            return True
        if _HEADING_RE.match(line) or _FENCE_RE.match(line) or _THEMATIC_BREAK_RE.match(line):
            return True
        if _QUOTE_RE.match(line) or line.lstrip().startswith("<!--"):
            return True
        item = _LIST_ITEM_RE.match(line)
        if item and item.group(3):
            return True
        return self._starts_table(pos)

    def blocks(self) -> list[Block]:
        result: list[Block] = []
        while self.pos < len(self.lines):
            block = self._next()
            if block is not None:
                result.append(block)
        return result

    def _next(self) -> Block | None:
        line = self.lines[self.pos]
        start = self.pos + 1 + self.offset

        if not line.strip():
            self.pos += 1
            return None

        fence = _FENCE_RE.match(line)
        if fence:
            return self._code(fence, start)

        heading = _HEADING_RE.match(line)
        if heading:
            self.pos += 1
            return Block(
                kind=BlockKind.HEADING,
                raw=(heading.group(2) or "").strip(),
                depth=len(heading.group(1)),
                line=start,
            )

        if line.lstrip().startswith("<!--"):
            return self._html(start)

        if _THEMATIC_BREAK_RE.match(line):
            self.pos += 1
            return None

        if self._starts_table(self.pos):
            return self._table(start)

        if _QUOTE_RE.match(line):
            return self._quote(start)

        item = _LIST_ITEM_RE.match(line)
        if item:
            return self._list(start, item)

        return self._paragraph(start)

    def _code(self, fence: re.Match, start: int) -> Block:
        marker = fence.group(2)
        language = fence.group(3)
        body: list[str] = []
        self.pos += 1
        while self.pos < len(self.lines):
            line = self.lines[self.pos]
            self.pos += 1
            stripped = line.strip()
            if stripped.startswith(marker[0] * len(marker)) and not stripped.strip(marker[0]):
                break
            body.append(line)
        return Block(kind=BlockKind.CODE, raw="\n".join(body), language=language, line=start)

    def _html(self, start: int) -> Block:
        body: list[str] = []
        while self.pos < len(self.lines):
            line = self.lines[self.pos]
            self.pos += 1
            body.append(line)
            if "-->" in line:
                break
        return Block(kind=BlockKind.HTML, raw="\n".join(body), line=start)

    def _table(self, start: int) -> Block:
        rows = [_split_table_row(self.lines[self.pos])]
        self.pos += 2  # header + delimiter
        while self.pos < len(self.lines):
            line = self.lines[self.pos]
            if not line.strip() or "|" not in line:
                break
            rows.append(_split_table_row(line))
            self.pos += 1
        raw = "\n".join(self.lines[start - 1 - self.offset:self.pos])
        return Block(kind=BlockKind.TABLE, raw=raw, rows=rows, line=start)

    def _quote(self, start: int) -> Block:
        body: list[str] = []
        while self.pos < len(self.lines):
            match = _QUOTE_RE.match(self.lines[self.pos])
            if not match:
                break
            body.append(match.group(1))
            self.pos += 1
        return Block(kind=BlockKind.QUOTE, raw="\n".join(body).strip(), line=start)

    def _list(self, start: int, first: re.Match) -> Block:
        base_indent = _indent_width(first.group(1))
        ordered = first.group(2)[0].isdigit()
        items: list[list[str]] = []
        previous_blank = False

        while self.pos < len(self.lines):
            line = self.lines[self.pos]
            if not line.strip():
                nxt = self.pos + 1
                while nxt < len(self.lines) and not self.lines[nxt].strip():
                    nxt += 1
                following = self._peek(nxt)
                if following is None:
                    self.pos = nxt
                    break
                sibling = _LIST_ITEM_RE.match(following)
                if not (_indent_width(following) > base_indent or (sibling and _indent_width(sibling.group(1)) == base_indent)):
                    break
                self.pos += 1
                previous_blank = True
                continue

            match = _LIST_ITEM_RE.match(line)
            indent = _indent_width(line)
            if match and indent <= base_indent:
                if indent < base_indent:
                    break
                items.append([match.group(3) or ""])
            elif indent > base_indent and items:
                items[-1].append(line.strip())
            elif not previous_blank and items and not self._interrupts_paragraph(self.pos):
                items[-1].append(line.strip())
            else:
                break
            previous_blank = False
            self.pos += 1

        list_items: list[ListItem] = []
        for lines in items:
            raw = "\n".join(lines)
            checked: Optional[bool] = None
            box = _CHECKBOX_RE.match(raw)
            if box:
                checked = box.group(1).lower() == "x"
                raw = raw[box.end():]
            list_items.append(ListItem(raw=raw.strip(), checked=checked))

        raw_block = "\n".join(self.lines[start - 1 - self.offset:self.pos]).rstrip()
        return Block(kind=BlockKind.LIST, raw=raw_block, ordered=ordered, items=list_items, line=start)

    def _paragraph(self, start: int) -> Block:
        body = [self.lines[self.pos].strip()]
        self.pos += 1
        while self.pos < len(self.lines) and not self._interrupts_paragraph(self.pos):
            body.append(self.lines[self.pos].strip())
            self.pos += 1
        return Block(kind=BlockKind.PARAGRAPH, raw="\n".join(body), line=start)


def parse_document(text: str) -> Document:
    """Parse markdown text into a ``Document`` (frontmatter + blocks)."""
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    frontmatter, body, offset = _extract_frontmatter(normalized)
    return Document(blocks=_Tokenizer(body.split("\n"), offset).blocks(), frontmatter=frontmatter)


def parse_blocks(text: str) -> list[Block]:
    """Parse markdown text into its ordered block sequence."""
    return parse_document(text).blocks
