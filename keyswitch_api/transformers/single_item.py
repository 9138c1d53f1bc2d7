"""single_item_info: information about one switch."""

from keyswitch_api.markdown_parser import ParsedMarkdown
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import SingleItemInfoData, SoundAndFeel
from keyswitch_api.text_processing import (
    clean_points,
    lines_with_keywords,
    section_text,
    split_sentences,
    strip_inline_markdown,
)
from keyswitch_api.transformers.base import ResponseTransformer

SOUND_TITLES = ("sound", "acoustic")
FEEL_TITLES = ("feel", "typing experience", "tactil")
RECOMMENDATION_TITLES = ("recommend", "best for", "ideal for", "who should", "use case")


class SingleItemTransformer(ResponseTransformer):
    response_type = ResponseType.SINGLE_ITEM_INFO

    def build(self, parsed: ParsedMarkdown) -> SingleItemInfoData:
        mentions = self.find_mentions(parsed)
        title = self.extract_title(parsed)
        item_name = self._primary_item(title, mentions)
        if item_name and title == self.default_title:
            title = item_name

        specifications = None
        if item_name:
            attributes = self.table_attributes(parsed, item_name, single_item=True)
            attributes.update(self.list_attributes(parsed))
            specifications = self.build_specification(item_name, attributes)

        sound = self._describe(parsed, SOUND_TITLES, ("sound", "acoustic", "noise", "thock", "clack"))
        feel = self._describe(parsed, FEEL_TITLES, ("feel", "tactile", "smooth", "bump", "linear"))
        sound_and_feel = SoundAndFeel(sound=sound, feel=feel) if sound or feel else None

        related = [name for name in mentions if name != item_name]

        return SingleItemInfoData(
            title=title,
            overview=self.extract_overview(parsed),
            item_name=item_name,
            manufacturer=self.resolver.manufacturer_for(item_name) if item_name else None,
            specifications=specifications,
            sound_and_feel=sound_and_feel,
            recommendations=self._recommendations(parsed),
            key_points=self.extract_key_points(parsed),
            related_items=self.example_items(related),
            metadata=self.base_metadata(
                parsed,
                itemResolved=item_name is not None,
                mentionsFound=len(mentions),
                specificationSource=specifications.source if specifications else "none",
            ),
        )

    def _primary_item(self, title: str, mentions: list[str]) -> str | None:
        """Product named in the title, else the first product mentioned."""
        in_title = self.resolver.extract_from_text(title) or self.resolve_loose([title])
        if in_title:
            return in_title[0]
        return mentions[0] if mentions else None

    def _describe(
        self,
        parsed: ParsedMarkdown,
        title_keywords: tuple[str, ...],
        line_keywords: tuple[str, ...],
    ) -> str | None:
        section = self.section_by_title(parsed, title_keywords)
        if section is not None:
            text = section_text(section)
            if text:
                return strip_inline_markdown(text)

        sentences = [
            sentence
            for paragraph in parsed.raw.split("\n")
            if not paragraph.lstrip().startswith(("#", "|"))
            for sentence in split_sentences(strip_inline_markdown(paragraph))
        ]
        matching = lines_with_keywords("\n".join(sentences), line_keywords)
        return matching.replace("\n", " ") or None

    def _recommendations(self, parsed: ParsedMarkdown) -> list[str]:
        section = self.section_by_title(parsed, RECOMMENDATION_TITLES)
        if section is not None:
            items = self.section_items(parsed, section)
            if items:
                return clean_points(items, limit=5)
            return clean_points(split_sentences(" ".join(section.content)), limit=3)

        lines = lines_with_keywords(parsed.raw, ("recommend", "great for", "ideal for", "best for"))
        return clean_points([line.lstrip("-*+ ") for line in lines.split("\n") if line], limit=3)
