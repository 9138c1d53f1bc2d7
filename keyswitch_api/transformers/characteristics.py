"""characteristics_explanation: what switch characteristics mean."""

from keyswitch_api.domain_knowledge import (
    CHARACTERISTIC_HINTS,
    CHARACTERISTIC_KEYWORDS,
    categorize_characteristic,
)
from keyswitch_api.markdown_parser import ParsedMarkdown
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import (
    CharacteristicDetail,
    CharacteristicsExplanationData,
    ExampleBlock,
    PracticalImplications,
)
from keyswitch_api.text_processing import (
    clean_points,
    first_sentence,
    lines_with_keywords,
    paragraphs,
    split_label,
    strip_inline_markdown,
)
from keyswitch_api.transformers.base import ResponseTransformer

MAX_CHARACTERISTICS = 6
GENERIC_TITLES = ("overview", "introduction", "summary", "conclusion", "examples", "example switches")
FACTOR_KEYWORDS = ("depends on", "affected by", "determined by", "factor", "influence")
IMPLICATION_KEYWORDS = ("user", "experience", "typing", "gaming", "prefer")


class CharacteristicsTransformer(ResponseTransformer):
    response_type = ResponseType.CHARACTERISTICS_EXPLANATION
    default_title = "Switch Characteristics Explained"

    def build(self, parsed: ParsedMarkdown) -> CharacteristicsExplanationData:
        explained = self._characteristics(parsed)
        details = [self._detail(parsed, name) for name in explained]
        mentions = self.find_mentions(parsed)

        examples = None
        if mentions:
            examples = ExampleBlock(
                title="Examples",
                content="Switches mentioned that illustrate these characteristics",
                item_examples=self.example_items(mentions),
            )

        return CharacteristicsExplanationData(
            title=self.extract_title(parsed),
            characteristics_explained=explained,
            overview=self.extract_overview(parsed),
            characteristic_details=details,
            examples=examples,
            practical_implications=self._implications(parsed),
            metadata=self.base_metadata(
                parsed,
                characteristicsFound=len(explained),
                examplesFound=len(mentions),
            ),
        )

    def _characteristics(self, parsed: ParsedMarkdown) -> list[str]:
        """Labelled list items, then section titles, then keyword hits, then item openings."""
        found: list[str] = []

        def add(name: str) -> None:
            name = strip_inline_markdown(name).strip(" :.-")
            if name and name.lower() not in (f.lower() for f in found):
                found.append(name)

        items = parsed.list_items()
        for item in items:
            label, _ = split_label(item)
            if label and len(label) <= 40:
                add(label)

        if not found:
            for section in parsed.sections[1:] or parsed.sections:
                title = strip_inline_markdown(section.title)
                if title.lower() not in GENERIC_TITLES and len(title) <= 60:
                    add(title)

        if not found:
            lowered = (" ".join(items) if items else parsed.raw).lower()
            for keyword in CHARACTERISTIC_KEYWORDS:
                if keyword in lowered:
                    add(keyword.title())

        if not found:
            for item in items:
                add(first_sentence(item, max_words=5))

        return found[:MAX_CHARACTERISTICS]

    def _detail(self, parsed: ParsedMarkdown, name: str) -> CharacteristicDetail:
        explanation = self._explanation(parsed, name)
        category = categorize_characteristic(name + " " + explanation)
        factors = [
            line.lstrip("-*+ ")
            for line in lines_with_keywords(explanation, FACTOR_KEYWORDS).split("\n")
            if line
        ]
        return CharacteristicDetail(
            characteristic_name=name,
            category=category,
            explanation=explanation or CHARACTERISTIC_HINTS[category],
            factors=clean_points(factors, limit=3),
            impact=CHARACTERISTIC_HINTS[category],
        )

    def _explanation(self, parsed: ParsedMarkdown, name: str) -> str:
        lowered = name.lower()
        for item in parsed.list_items():
            label, description = split_label(item)
            if label and strip_inline_markdown(label).lower() == lowered and description:
                return strip_inline_markdown(description)

        for index, section in enumerate(parsed.sections):
            if strip_inline_markdown(section.title).lower() == lowered:
                found = paragraphs(section.content)
                if found:
                    return strip_inline_markdown(" ".join(found))
                items = [i for lst in parsed.lists_within(index) for i in lst.items]
                if items:
                    return "; ".join(strip_inline_markdown(i) for i in items[:3])

        for item in parsed.list_items():
            if lowered in item.lower():
                return strip_inline_markdown(item)

        sentences = lines_with_keywords("\n".join(paragraphs(parsed.raw.split("\n"))), (lowered,))
        return strip_inline_markdown(sentences.split("\n")[0]) if sentences else ""

    def _implications(self, parsed: ParsedMarkdown) -> PracticalImplications | None:
        section = self.section_by_title(parsed, ("practical", "implication", "choosing", "in practice"))
        if section is not None:
            found = paragraphs(section.content)
            index = parsed.sections.index(section)
            considerations = [i for lst in parsed.lists_within(index) for i in lst.items]
            return PracticalImplications(
                user_experience=strip_inline_markdown(" ".join(found)) or "See the considerations below.",
                key_considerations=clean_points(considerations, limit=5),
            )

        prose = "\n".join(paragraphs(parsed.raw.split("\n")))
        lines = lines_with_keywords(prose, IMPLICATION_KEYWORDS)
        if not lines:
            return None
        return PracticalImplications(
            user_experience=strip_inline_markdown(lines.replace("\n", " ")),
            key_considerations=self.extract_key_points(parsed, limit=3),
        )
