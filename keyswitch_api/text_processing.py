"""Text helpers shared by the transformers and the fallback generator."""

import re

from keyswitch_api.markdown_parser import (
    ParsedMarkdown,
    Section,
    is_table_line,
    match_list_item,
)

HEADING_LINE = re.compile(r"^\s*#{1,6}\s+")
BOLD_PHRASE = re.compile(r"\*\*([^*\n]{2,60})\*\*")
INLINE_MARKUP = re.compile(r"(\*\*|__|\*|_|`)")
LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

EMPHASIS_KEYWORDS = (
    "important",
    "key",
    "main",
    "primary",
    "significant",
    "crucial",
    "note",
    "remember",
    "consider",
    "should",
    "must",
    "recommended",
)

DIFFERENCE_KEYWORDS = (
    "difference",
    "different",
    "unlike",
    "compared to",
    "versus",
    " vs",
    "whereas",
    "however",
    "while",
    "although",
)


def strip_inline_markdown(text: str) -> str:
    """Remove emphasis, code ticks and link syntax, keeping the text."""
    text = LINK.sub(r"\1", text)
    return INLINE_MARKUP.sub("", text).strip()


def format_lines(lines: tuple[str, ...] | list[str]) -> str:
    """Join body lines, collapsing runs of blank lines into one paragraph break."""
    if not lines:
        return ""
    text = "\n".join(lines)
    return re.sub(r"\n\s*\n(\s*\n)+", "\n\n", text).strip()


def section_text(section: Section) -> str:
    """Formatted body text of a section."""
    return format_lines(section.content)


def is_prose_line(line: str) -> bool:
    """Check if a line is plain prose (not a heading, list item or table row)."""
    stripped = line.strip()
    if not stripped:
        return False
    if HEADING_LINE.match(stripped) or is_table_line(stripped):
        return False
    return match_list_item(line) is None


def paragraphs(lines: tuple[str, ...] | list[str]) -> list[str]:
    """Group consecutive prose lines into paragraphs."""
    result: list[str] = []
    current: list[str] = []
    for line in lines:
        if is_prose_line(line):
            current.append(line.strip())
            continue
        if current:
            result.append(" ".join(current))
            current = []
    if current:
        result.append(" ".join(current))
    return result


def first_paragraph(parsed: ParsedMarkdown) -> str:
    """First prose paragraph anywhere in the document."""
    found = paragraphs(parsed.raw.split("\n"))
    return found[0] if found else ""


def first_sentence(text: str, max_words: int = 12) -> str:
    """First sentence of plain text, shortened to `max_words` words."""
    cleaned = strip_inline_markdown(text.strip())
    if not cleaned:
        return ""
    sentence = SENTENCE_END.split(cleaned, maxsplit=1)[0].strip()
    words = sentence.split()
    if len(words) > max_words:
        sentence = " ".join(words[:max_words]) + "..."
    return sentence.rstrip(".:;,") if not sentence.endswith("...") else sentence


def split_sentences(text: str) -> list[str]:
    """Split prose into sentences."""
    return [s.strip() for s in SENTENCE_END.split(text) if s.strip()]


def find_section(parsed: ParsedMarkdown, keywords: tuple[str, ...] | list[str]) -> Section | None:
    """First section whose title contains any keyword (case-insensitive)."""
    for section in parsed.sections:
        title = section.title.lower()
        if any(keyword.lower() in title for keyword in keywords):
            return section
    return None


def lines_with_keywords(text: str, keywords: tuple[str, ...] | list[str]) -> str:
    """Lines of `text` that contain any keyword."""
    lowered = [keyword.lower() for keyword in keywords]
    return "\n".join(
        line.strip()
        for line in text.split("\n")
        if line.strip() and any(keyword in line.lower() for keyword in lowered)
    )


def key_differences(parsed: ParsedMarkdown, limit: int = 5) -> list[str]:
    """Lines that state a contrast between items."""
    differences: list[str] = []
    for line in parsed.raw.split("\n"):
        stripped = line.strip()
        if len(stripped) <= 20 or HEADING_LINE.match(stripped) or is_table_line(stripped):
            continue
        lowered = stripped.lower()
        if any(keyword in lowered for keyword in DIFFERENCE_KEYWORDS):
            item = match_list_item(line)
            cleaned = strip_inline_markdown(item[1] if item else stripped)
            if cleaned not in differences:
                differences.append(cleaned)
    return differences[:limit]


def key_sentences(parsed: ParsedMarkdown, limit: int = 5) -> list[str]:
    """Sentences that contain emphasis keywords such as 'important' or 'should'."""
    bodies = [" ".join(paragraphs(section.content)) for section in parsed.sections]
    if not bodies:
        bodies = paragraphs(parsed.raw.split("\n"))

    found: list[str] = []
    for body in bodies:
        for sentence in split_sentences(strip_inline_markdown(body)):
            lowered = sentence.lower()
            if not 20 < len(sentence) < 150:
                continue
            if any(re.search(rf"\b{keyword}\b", lowered) for keyword in EMPHASIS_KEYWORDS):
                if sentence not in found:
                    found.append(sentence)
    return found[:limit]


def clean_points(points: list[str], limit: int) -> list[str]:
    """Strip markup, drop very short or long points and de-duplicate."""
    cleaned: list[str] = []
    for point in points:
        text = strip_inline_markdown(point)
        if 10 < len(text) < 200 and text not in cleaned:
            cleaned.append(text)
    return cleaned[:limit]


def bold_phrases(text: str) -> list[str]:
    """Phrases wrapped in **double asterisks**."""
    phrases: list[str] = []
    for match in BOLD_PHRASE.finditer(text):
        phrase = match.group(1).strip().rstrip(":")
        if phrase and phrase not in phrases:
            phrases.append(phrase)
    return phrases


def split_label(item: str) -> tuple[str | None, str]:
    """Split a list item of the form 'Label: description' or '**Label** - description'."""
    bold = re.match(r"^\*\*([^*]+)\*\*\s*[:\-–]?\s*(.*)$", item)
    if bold:
        return bold.group(1).strip().rstrip(":"), bold.group(2).strip()
    plain = re.match(r"^([^:]{2,40}):\s+(.+)$", item)
    if plain:
        return plain.group(1).strip(), plain.group(2).strip()
    return None, item.strip()
