"""standard_answer: any answer without a specialised shape."""

from keyswitch_api.domain_knowledge import detect_query_type, suggested_questions
from keyswitch_api.markdown_parser import ParsedMarkdown, Section
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import (
    AnalysisSection,
    AnswerContent,
    FollowUp,
    SourceInformation,
    StandardAnswerData,
)
from keyswitch_api.text_processing import (
    clean_points,
    paragraphs,
    section_text,
    strip_inline_markdown,
)
from keyswitch_api.transformers.base import ResponseTransformer

TECHNICAL_TERMS = (
    "actuation",
    "pre-travel",
    "bottom-out",
    "spring",
    "stem",
    "housing",
    "lubrication",
    "force curve",
    "hysteresis",
    "pcb",
)
MAX_SECTIONS = 6


class StandardAnswerTransformer(ResponseTransformer):
    response_type = ResponseType.STANDARD_ANSWER
    default_title = "Answer"

    def build(self, parsed: ParsedMarkdown) -> StandardAnswerData:
        mentions = self.find_mentions(parsed)
        query_type = detect_query_type(parsed.raw, mentions_product=bool(mentions))
        topics = [strip_inline_markdown(section.title) for section in parsed.sections[1:5]]

        return StandardAnswerData(
            title=self.extract_title(parsed),
            query_type=query_type,
            content=self._content(parsed),
            sections=[self._section(parsed, section) for section in parsed.sections[:MAX_SECTIONS]],
            key_points=self.extract_key_points(parsed),
            related_items=self.example_items(mentions),
            follow_up=FollowUp(
                suggested_questions=suggested_questions(query_type),
                related_topics=topics,
            ),
            source_information=self._source_information(parsed, mentions),
            metadata=self.base_metadata(
                parsed,
                responseLength=self._length_label(parsed),
                technicalLevel=self._technical_level(parsed),
                mentionsFound=len(mentions),
            ),
        )

    def _content(self, parsed: ParsedMarkdown) -> AnswerContent:
        """Main answer from the first section, extra context from later ones."""
        main_answer = self.extract_overview(parsed)
        if not parsed.sections:
            found = paragraphs(parsed.raw.split("\n"))
            if len(found) > 1:
                main_answer = strip_inline_markdown("\n\n".join(found))
            return AnswerContent(main_answer=main_answer or strip_inline_markdown(parsed.raw.strip()))

        def titled(sections: tuple[Section, ...]) -> str | None:
            blocks = [
                f"{strip_inline_markdown(section.title)}\n{strip_inline_markdown(section_text(section))}".strip()
                for section in sections
            ]
            return "\n\n".join(blocks) or None

        return AnswerContent(
            main_answer=main_answer,
            additional_context=titled(parsed.sections[1:3]),
            related_information=titled(parsed.sections[3:]),
        )

    def _section(self, parsed: ParsedMarkdown, section: Section) -> AnalysisSection:
        items = clean_points(self.section_items(parsed, section), limit=5)
        return AnalysisSection(
            title=strip_inline_markdown(section.title),
            content=strip_inline_markdown(section_text(section)),
            key_points=items or None,
        )

    def _source_information(self, parsed: ParsedMarkdown, mentions: list[str]) -> SourceInformation:
        source_types = ["general_knowledge"]
        if mentions:
            source_types.insert(0, "switch_database")
        if parsed.sections and parsed.metadata.total_length > 500:
            confidence = "high"
        elif parsed.has_structure:
            confidence = "medium"
        else:
            confidence = "low"
        limitations = []
        if not parsed.has_structure:
            limitations.append("Answer has no headings, lists or tables")
        return SourceInformation(
            source_types=source_types,
            confidence_level=confidence,
            limitations=limitations,
        )

    def _length_label(self, parsed: ParsedMarkdown) -> str:
        length = parsed.metadata.total_length
        if length < 500:
            return "brief"
        if length < 2000:
            return "moderate"
        return "detailed"

    def _technical_level(self, parsed: ParsedMarkdown) -> str:
        lowered = parsed.raw.lower()
        hits = sum(1 for term in TECHNICAL_TERMS if term in lowered)
        if hits >= 5:
            return "advanced"
        if hits >= 2:
            return "intermediate"
        return "beginner"
