"""Base class and shared extraction heuristics for response transformers."""

import re
from typing import Any

from keyswitch_api.catalog import CatalogEntry
from keyswitch_api.entity_resolver import EntityResolver
from keyswitch_api.errors import ErrorKind, TransformError
from keyswitch_api.markdown_parser import ParsedMarkdown, Section, Table
from keyswitch_api.models import CamelModel, ResponseType
from keyswitch_api.schemas import ExampleItem, ItemSpecification, dump_data
from keyswitch_api.text_processing import (
    bold_phrases,
    clean_points,
    find_section,
    first_paragraph,
    first_sentence,
    key_sentences,
    paragraphs,
    split_label,
    strip_inline_markdown,
)

VERSUS_PATTERN = re.compile(r"^(.+?)\s+(?:vs\.?|versus)\s+(.+)$", re.IGNORECASE)
LIST_SEPARATOR = re.compile(r"\s*(?:,|\band\b|&)\s*", re.IGNORECASE)

# Confidence above which a loose candidate (emphasis, table cell) counts as a product
LOOSE_MATCH_CONFIDENCE = 0.6

CATALOG_ATTRIBUTE_LABELS: dict[str, tuple[str, str]] = {
    "actuation_force": ("Actuation Force", "g"),
    "bottom_force": ("Bottom-out Force", "g"),
    "pre_travel": ("Pre-travel", "mm"),
    "total_travel": ("Total Travel", "mm"),
}

SPECIFICATION_KEYWORDS = ("spec", "technical", "details", "stats")


def normalize_label(label: str) -> str:
    """Comparable form of an attribute label ('Pre-Travel' -> 'pretravel')."""
    return re.sub(r"[^a-z0-9]", "", label.lower())


class ResponseTransformer:
    """Turns a ParsedMarkdown into the data payload of one response type.

    Subclasses implement `build()` and return a schemas model; `transform()`
    guards against empty input and serialises the result.
    """

    response_type: ResponseType
    default_title = "Switch Information"

    def __init__(self, resolver: EntityResolver):
        self.resolver = resolver

    @property
    def name(self) -> str:
        return type(self).__name__

    def transform(self, parsed: ParsedMarkdown) -> dict[str, Any]:
        """Build and serialise the data payload.

        Raises:
            TransformError: INSUFFICIENT_CONTENT when the markdown has no text.
        """
        if not parsed.raw.strip():
            raise TransformError(
                ErrorKind.INSUFFICIENT_CONTENT,
                f"No usable content for {self.response_type.value}",
            )
        return dump_data(self.build(parsed))

    def build(self, parsed: ParsedMarkdown) -> CamelModel:
        raise NotImplementedError

    # =========================================================================
    # Title, overview and key points
    # =========================================================================

    def extract_title(self, parsed: ParsedMarkdown, default: str | None = None) -> str:
        """First significant heading, else the first sentence, else a default."""
        for section in parsed.sections:
            title = strip_inline_markdown(section.title)
            if section.level <= 3 and 5 < len(title) < 80:
                return title

        opening = first_paragraph(parsed)
        if opening:
            sentence = first_sentence(opening)
            if sentence:
                return sentence
        return default or self.default_title

    def extract_overview(self, parsed: ParsedMarkdown) -> str:
        """Body of the first section, else the first paragraph, else list items."""
        if parsed.sections:
            overview = strip_inline_markdown("\n\n".join(paragraphs(parsed.sections[0].content)[:2]))
            if overview:
                return overview

        opening = strip_inline_markdown(first_paragraph(parsed))
        if opening:
            return opening

        items = clean_points(parsed.list_items(), limit=3)
        if items:
            return "; ".join(items)
        return self.extract_title(parsed)

    def extract_key_points(self, parsed: ParsedMarkdown, limit: int = 5) -> list[str]:
        """Bulleted items, then numbered items, then emphasis sentences."""
        points = clean_points(parsed.list_items("bulleted"), limit)
        if len(points) < limit:
            points = clean_points(points + parsed.list_items("numbered"), limit)
        if not points:
            points = clean_points(key_sentences(parsed, limit), limit)
        return points

    def section_by_title(self, parsed: ParsedMarkdown, keywords: tuple[str, ...]) -> Section | None:
        return find_section(parsed, keywords)

    def section_items(self, parsed: ParsedMarkdown, section: Section) -> list[str]:
        """List items that belong to a section."""
        index = parsed.sections.index(section)
        return [item for md_list in parsed.lists_within(index) for item in md_list.items]

    # =========================================================================
    # Product mentions
    # =========================================================================

    def resolve_loose(self, candidates: list[str]) -> list[str]:
        """Resolve loosely-identified candidates, keeping confident matches."""
        resolved: list[str] = []
        for candidate in candidates:
            if self.resolver.is_generic_term(candidate):
                continue
            result = self.resolver.resolve(strip_inline_markdown(candidate))
            if (
                result.is_valid
                and result.confidence > LOOSE_MATCH_CONFIDENCE
                and result.best_match not in resolved
            ):
                resolved.append(result.best_match)
        return resolved

    def versus_candidates(self, parsed: ParsedMarkdown) -> list[str]:
        """Raw names from 'A vs B' headings."""
        candidates: list[str] = []
        for section in parsed.sections:
            match = VERSUS_PATTERN.match(strip_inline_markdown(section.title))
            if not match:
                continue
            for side in match.groups():
                for part in LIST_SEPARATOR.split(side.strip(" :.")):
                    part = part.strip()
                    if part and part not in candidates:
                        candidates.append(part)
        return candidates

    def table_candidates(self, parsed: ParsedMarkdown) -> list[str]:
        """First-column cells and column headers of every table."""
        candidates: list[str] = []
        for table in parsed.tables:
            if not table.headers:
                continue
            candidates.extend(table.headers[1:])
            first = table.headers[0]
            candidates.extend(row.get(first, "") for row in table.rows)
        return [c for c in candidates if c.strip()]

    def find_mentions(self, parsed: ParsedMarkdown) -> list[str]:
        """Catalog products mentioned anywhere in the markdown."""
        mentions = list(self.resolver.extract_from_text(parsed.raw))
        loose = (
            self.versus_candidates(parsed)
            + bold_phrases(parsed.raw)
            + self.table_candidates(parsed)
        )
        for name in self.resolve_loose(loose):
            if name not in mentions:
                mentions.append(name)
        return mentions

    def example_items(self, names: list[str], limit: int = 5) -> list[ExampleItem]:
        items: list[ExampleItem] = []
        for name in names[:limit]:
            entry = self.resolver.lookup_entry(name)
            items.append(
                ExampleItem(
                    name=name,
                    manufacturer=entry.manufacturer if entry else self.resolver.manufacturer_for(name),
                    description=entry.describe() if entry else None,
                )
            )
        return items

    # =========================================================================
    # Specifications
    # =========================================================================

    def table_attributes(self, parsed: ParsedMarkdown, item_name: str, single_item: bool = False) -> dict[str, str]:
        """Attributes of one product found in the markdown's tables.

        Tables may list products as rows (first column) or as columns. A
        two-column key/value table is attributed to the product when
        `single_item` is set.
        """
        attributes: dict[str, str] = {}
        for table in parsed.tables:
            attributes.update(self._attributes_from_table(table, item_name, single_item))
        return attributes

    def _attributes_from_table(self, table: Table, item_name: str, single_item: bool) -> dict[str, str]:
        if not table.headers:
            return {}
        first = table.headers[0]

        for header in table.headers[1:]:
            if self._refers_to(header, item_name):
                return {
                    strip_inline_markdown(row.get(first, "")): strip_inline_markdown(row.get(header, ""))
                    for row in table.rows
                    if row.get(first, "").strip() and row.get(header, "").strip()
                }

        for row in table.rows:
            if self._refers_to(row.get(first, ""), item_name):
                return {
                    header: strip_inline_markdown(row.get(header, ""))
                    for header in table.headers[1:]
                    if row.get(header, "").strip()
                }

        if single_item and len(table.headers) == 2:
            second = table.headers[1]
            return {
                strip_inline_markdown(row.get(first, "")): strip_inline_markdown(row.get(second, ""))
                for row in table.rows
                if row.get(first, "").strip() and row.get(second, "").strip()
            }
        return {}

    def _refers_to(self, text: str, item_name: str) -> bool:
        cleaned = strip_inline_markdown(text)
        if not cleaned:
            return False
        if cleaned.lower() == item_name.lower():
            return True
        if self.resolver.is_generic_term(cleaned):
            return False
        result = self.resolver.resolve(cleaned)
        return result.is_valid and result.confidence > LOOSE_MATCH_CONFIDENCE and result.best_match == item_name

    def list_attributes(self, parsed: ParsedMarkdown) -> dict[str, str]:
        """'Label: value' items from a specifications section."""
        section = self.section_by_title(parsed, SPECIFICATION_KEYWORDS)
        if section is None:
            return {}
        attributes: dict[str, str] = {}
        for item in self.section_items(parsed, section):
            label, value = split_label(item)
            if label and value:
                attributes[strip_inline_markdown(label)] = strip_inline_markdown(value)
        return attributes

    def build_specification(self, item_name: str, markdown_attributes: dict[str, str]) -> ItemSpecification:
        """Merge markdown attributes with catalog values for fields the markdown lacks."""
        entry = self.resolver.lookup_entry(item_name)
        attributes: dict[str, Any] = dict(markdown_attributes)
        added = self._catalog_attributes(entry, {normalize_label(k) for k in attributes})
        attributes.update(added)

        if markdown_attributes and added:
            source = "mixed"
        elif markdown_attributes:
            source = "markdown"
        elif added:
            source = "catalog"
        else:
            source = "none"

        return ItemSpecification(
            name=item_name,
            manufacturer=entry.manufacturer if entry else self.resolver.manufacturer_for(item_name),
            category=entry.category if entry else None,
            attributes=attributes,
            source=source,
        )

    def _catalog_attributes(self, entry: CatalogEntry | None, present: set[str]) -> dict[str, Any]:
        if entry is None:
            return {}
        added: dict[str, Any] = {}
        for key, (label, unit) in CATALOG_ATTRIBUTE_LABELS.items():
            value = entry.numeric_attributes.get(key)
            if value is not None and normalize_label(label) not in present:
                added[label] = f"{value:g}{unit}"
        for label, value in (
            ("Type", entry.category),
            ("Top Housing", entry.top_housing),
            ("Bottom Housing", entry.bottom_housing),
            ("Stem", entry.stem),
        ):
            if value and normalize_label(label) not in present:
                added[label] = value.capitalize() if label == "Type" else value
        return added

    # =========================================================================
    # Metadata
    # =========================================================================

    def base_metadata(self, parsed: ParsedMarkdown, **extra: Any) -> dict[str, Any]:
        """Extraction statistics attached to every payload."""
        metadata: dict[str, Any] = {
            "parsingMethod": "markdown_structure",
            "sectionsCount": parsed.metadata.sections_count,
            "tablesCount": parsed.metadata.tables_count,
            "listsCount": parsed.metadata.lists_count,
            "totalLength": parsed.metadata.total_length,
            "hasStructure": parsed.has_structure,
        }
        metadata.update(extra)
        return metadata
