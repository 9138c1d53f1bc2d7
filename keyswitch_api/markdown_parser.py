"""Structural markdown parser.

Decomposes an LLM's markdown answer into ordered sections, tables and lists.
Parsing never fails: markdown without any structure yields empty collections
and the full text in `raw`, and every downstream transformer copes with that.
"""

import re
from dataclasses import dataclass, field
from typing import Literal

import structlog

logger = structlog.get_logger()

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
BULLET_PATTERN = re.compile(r"^\s*[-*+]\s+(.+)$")
NUMBERED_PATTERN = re.compile(r"^\s*\d+[.)]\s+(.+)$")
HORIZONTAL_RULE_PATTERN = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")
TABLE_SEPARATOR_PATTERN = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")

ListType = Literal["bulleted", "numbered"]


# =============================================================================
# Parsed Structure
# =============================================================================


@dataclass(frozen=True)
class Section:
    """A heading and the body lines up to the next heading."""

    level: int
    title: str
    content: tuple[str, ...]
    start_line: int


@dataclass(frozen=True)
class Table:
    """A pipe-delimited table; rows map header to cell text."""

    headers: tuple[str, ...]
    rows: tuple[dict[str, str], ...]
    start_line: int


@dataclass(frozen=True)
class MarkdownList:
    """A contiguous run of list items, typed by its first marker."""

    type: ListType
    items: tuple[str, ...]
    start_line: int


@dataclass(frozen=True)
class ParseMetadata:
    """Simple structural statistics."""

    total_lines: int
    total_length: int
    sections_count: int = 0
    tables_count: int = 0
    lists_count: int = 0


@dataclass(frozen=True)
class ParsedMarkdown:
    """Order-preserving decomposition of one markdown document."""

    sections: tuple[Section, ...]
    tables: tuple[Table, ...]
    lists: tuple[MarkdownList, ...]
    raw: str
    metadata: ParseMetadata = field(default_factory=lambda: ParseMetadata(0, 0))

    @property
    def has_structure(self) -> bool:
        """Check whether any heading, table or list was found."""
        return bool(self.sections or self.tables or self.lists)

    def list_items(self, list_type: ListType | None = None) -> list[str]:
        """Flatten list items in source order, optionally by list type."""
        return [
            item
            for md_list in self.lists
            if list_type is None or md_list.type == list_type
            for item in md_list.items
        ]

    def lists_within(self, section_index: int) -> list[MarkdownList]:
        """Lists that start inside the section at `section_index`."""
        section = self.sections[section_index]
        if section_index + 1 < len(self.sections):
            end_line = self.sections[section_index + 1].start_line
        else:
            end_line = self.metadata.total_lines
        return [lst for lst in self.lists if section.start_line < lst.start_line < end_line]


# =============================================================================
# Line Classification
# =============================================================================


def is_table_line(stripped: str) -> bool:
    """Check if a stripped line is a pipe-delimited table row."""
    if "|" not in stripped:
        return False
    return stripped.startswith("|") or stripped.endswith("|") or stripped.count("|") >= 2


def split_table_cells(stripped: str) -> list[str]:
    """Split a table row into trimmed cells, ignoring outer pipes."""
    body = stripped
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|"):
        body = body[:-1]
    return [cell.strip() for cell in body.split("|")]


def match_list_item(line: str) -> tuple[ListType, str] | None:
    """Return (list type, item text) if the line is a list item."""
    if HORIZONTAL_RULE_PATTERN.match(line):
        return None
    bullet = BULLET_PATTERN.match(line)
    if bullet:
        return "bulleted", bullet.group(1).strip()
    numbered = NUMBERED_PATTERN.match(line)
    if numbered:
        return "numbered", numbered.group(1).strip()
    return None


def _trim_blank_edges(lines: list[str]) -> tuple[str, ...]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return tuple(lines[start:end])


# =============================================================================
# Parser
# =============================================================================


class _Builder:
    """Mutable accumulator used while scanning; frozen into ParsedMarkdown."""

    def __init__(self) -> None:
        self.sections: list[Section] = []
        self.tables: list[Table] = []
        self.lists: list[MarkdownList] = []
        self._section: tuple[int, str, int] | None = None
        self._section_lines: list[str] = []
        self._table_header: list[str] | None = None
        self._table_rows: list[dict[str, str]] = []
        self._table_start = 0
        self._list_type: ListType | None = None
        self._list_items: list[str] = []
        self._list_start = 0

    def add_body_line(self, line: str) -> None:
        if self._section is not None:
            self._section_lines.append(line.rstrip())

    def start_section(self, level: int, title: str, line_no: int) -> None:
        self.close_section()
        self._section = (level, title, line_no)
        self._section_lines = []

    def close_section(self) -> None:
        if self._section is None:
            return
        level, title, line_no = self._section
        self.sections.append(
            Section(
                level=level,
                title=title,
                content=_trim_blank_edges(self._section_lines),
                start_line=line_no,
            )
        )
        self._section = None
        self._section_lines = []

    def add_table_row(self, stripped: str, line_no: int) -> None:
        self.close_list()
        if TABLE_SEPARATOR_PATTERN.match(stripped):
            return
        cells = split_table_cells(stripped)
        if self._table_header is None:
            self._table_header = list(cells)
            self._table_rows = []
            self._table_start = line_no
            return
        row = {
            header: (cells[i] if i < len(cells) else "")
            for i, header in enumerate(self._table_header)
        }
        self._table_rows.append(row)

    def close_table(self) -> None:
        if self._table_header is None:
            return
        self.tables.append(
            Table(
                headers=tuple(self._table_header),
                rows=tuple(self._table_rows),
                start_line=self._table_start,
            )
        )
        self._table_header = None
        self._table_rows = []

    def add_list_item(self, list_type: ListType, item: str, line_no: int) -> None:
        self.close_table()
        if self._list_type is None:
            self._list_type = list_type
            self._list_items = []
            self._list_start = line_no
        self._list_items.append(item)

    def close_list(self) -> None:
        if self._list_type is None:
            return
        self.lists.append(
            MarkdownList(
                type=self._list_type,
                items=tuple(self._list_items),
                start_line=self._list_start,
            )
        )
        self._list_type = None
        self._list_items = []

    def close_blocks(self) -> None:
        self.close_table()
        self.close_list()


def parse_markdown(markdown: str) -> ParsedMarkdown:
    """Parse markdown into sections, tables and lists.

    Args:
        markdown: Raw markdown text. None is treated as an empty document.

    Returns:
        ParsedMarkdown whose collections preserve source order.
    """
    text = markdown or ""
    lines = text.split("\n")
    builder = _Builder()

    for line_no, line in enumerate(lines):
        stripped = line.strip()

        if not stripped:
            builder.close_blocks()
            builder.add_body_line(line)
            continue

        heading = HEADING_PATTERN.match(stripped)
        if heading:
            builder.close_blocks()
            builder.start_section(len(heading.group(1)), heading.group(2).strip(), line_no)
            continue

        builder.add_body_line(line)

        if is_table_line(stripped):
            builder.add_table_row(stripped, line_no)
            continue

        list_item = match_list_item(line)
        if list_item:
            builder.add_list_item(list_item[0], list_item[1], line_no)
            continue

        builder.close_blocks()

    builder.close_blocks()
    builder.close_section()

    parsed = ParsedMarkdown(
        sections=tuple(builder.sections),
        tables=tuple(builder.tables),
        lists=tuple(builder.lists),
        raw=text,
        metadata=ParseMetadata(
            total_lines=len(lines),
            total_length=len(text),
            sections_count=len(builder.sections),
            tables_count=len(builder.tables),
            lists_count=len(builder.lists),
        ),
    )
    logger.debug(
        "markdown_parsed",
        sections=parsed.metadata.sections_count,
        tables=parsed.metadata.tables_count,
        lists=parsed.metadata.lists_count,
        total_lines=parsed.metadata.total_lines,
    )
    return parsed
