"""material_analysis: housing and stem material analysis."""

import re

from keyswitch_api.domain_knowledge import (
    MaterialProfile,
    find_materials,
    generic_material_profile,
    material_aliases,
    material_profile,
)
from keyswitch_api.markdown_parser import ParsedMarkdown, match_list_item
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import (
    ExampleItem,
    MaterialAnalysisData,
    MaterialComparison,
    MaterialDetail,
    MaterialDetailedAnalysis,
    MaterialProperties,
)
from keyswitch_api.text_processing import (
    clean_points,
    key_differences,
    lines_with_keywords,
    paragraphs,
    strip_inline_markdown,
)
from keyswitch_api.transformers.base import ResponseTransformer

ADVANTAGE_MARKERS = ("advantage", "benefit", "pro", "strength", "positive")
DISADVANTAGE_MARKERS = ("disadvantage", "drawback", "con", "weakness", "negative", "downside")
MAX_POINTS = 4
MAX_EXAMPLES = 3


class MaterialAnalysisTransformer(ResponseTransformer):
    response_type = ResponseType.MATERIAL_ANALYSIS
    default_title = "Switch Material Analysis"

    def build(self, parsed: ParsedMarkdown) -> MaterialAnalysisData:
        headings = " ".join(section.title for section in parsed.sections)
        materials = find_materials(headings + "\n" + parsed.raw)
        mentions = self.find_mentions(parsed)

        details = [self._detail(parsed, material) for material in materials]
        templated = sum(1 for material in materials if not self._material_text(parsed, material))

        return MaterialAnalysisData(
            title=self.extract_title(parsed),
            materials_analyzed=materials,
            overview=self.extract_overview(parsed),
            material_details=details,
            comparisons=self._comparison(parsed, materials) if len(materials) > 1 else None,
            metadata=self.base_metadata(
                parsed,
                materialsFound=len(materials),
                templatedMaterials=templated,
                examplesFound=len(mentions),
            ),
        )

    def _material_text(self, parsed: ParsedMarkdown, material: str) -> str:
        """Sections titled after the material, else prose lines mentioning it."""
        aliases = material_aliases(material)
        bodies: list[str] = []
        for section in parsed.sections:
            title_words = strip_inline_markdown(section.title).lower().replace("(", " ").replace(")", " ").split()
            if any(alias in title_words for alias in aliases):
                bodies.append("\n".join(section.content))
        if bodies:
            return "\n".join(bodies)

        lines = []
        for line in parsed.raw.split("\n"):
            words = strip_inline_markdown(line).lower().replace(",", " ").replace(".", " ").split()
            if any(alias in words for alias in aliases):
                lines.append(line)
        return "\n".join(lines)

    def _detail(self, parsed: ParsedMarkdown, material: str) -> MaterialDetail:
        text = self._material_text(parsed, material)
        profile = material_profile(material) or generic_material_profile(material)

        sound = lines_with_keywords(text, ("sound", "acoustic", "pitch", "thock", "clack"))
        feel = lines_with_keywords(text, ("feel", "smooth", "tactile", "typing"))
        durability = lines_with_keywords(text, ("durab", "wear", "last", "shine", "crack"))

        return MaterialDetail(
            material_name=material,
            properties=MaterialProperties(
                sound_characteristics=self._prose(sound) or profile.sound,
                feel_characteristics=self._prose(feel) or profile.feel,
                durability=self._prose(durability) or profile.durability,
            ),
            advantages=self._marked_items(text, ADVANTAGE_MARKERS, DISADVANTAGE_MARKERS)
            or list(profile.advantages[:MAX_POINTS]),
            disadvantages=self._marked_items(text, DISADVANTAGE_MARKERS, ADVANTAGE_MARKERS)
            or list(profile.disadvantages[:MAX_POINTS]),
            item_examples=self._examples(text, profile),
        )

    def _prose(self, lines: str) -> str:
        cleaned = [
            strip_inline_markdown(match_list_item(line)[1] if match_list_item(line) else line)
            for line in lines.split("\n")
            if line and not line.lstrip().startswith(("#", "|"))
        ]
        return " ".join(cleaned)

    def _marked_items(self, text: str, markers: tuple[str, ...], stop_markers: tuple[str, ...]) -> list[str]:
        """List items following a 'Pros:' style marker line, up to the next marker."""
        items: list[str] = []
        collecting = False
        for line in text.split("\n"):
            item = match_list_item(line)
            if self._is_marker(line, item, stop_markers):
                collecting = False
            elif self._is_marker(line, item, markers):
                collecting = True
            elif collecting and item is not None:
                items.append(item[1])
            elif collecting and line.strip():
                collecting = False
        return clean_points(items, limit=MAX_POINTS)

    def _is_marker(self, line: str, item: tuple[str, str] | None, markers: tuple[str, ...]) -> bool:
        text = strip_inline_markdown(item[1] if item else line).lower()
        if item is not None and len(text) > 25:
            return False
        return any(re.search(rf"\b{marker}s?\b", text) for marker in markers)

    def _examples(self, text: str, profile: MaterialProfile) -> list[ExampleItem]:
        named = self.resolver.extract_from_text(text)
        if named:
            return self.example_items(named, limit=MAX_EXAMPLES)
        return [
            ExampleItem(name=name, manufacturer=maker, description=note)
            for name, maker, note in profile.examples[:MAX_EXAMPLES]
        ]

    def _comparison(self, parsed: ParsedMarkdown, materials: list[str]) -> MaterialComparison:
        prose = "\n".join(paragraphs(parsed.raw.split("\n")))
        section = self.section_by_title(parsed, ("comparison", "compare", "vs", "versus", "difference"))
        content = (
            strip_inline_markdown(" ".join(paragraphs(section.content)))
            if section is not None
            else ""
        )
        profiles = [(m, material_profile(m) or generic_material_profile(m)) for m in materials]

        def axis(keywords: tuple[str, ...], attribute: str) -> str:
            found = self._prose(lines_with_keywords(prose, keywords))
            if found:
                return found
            return " ".join(f"{name}: {getattr(profile, attribute)}" for name, profile in profiles)

        housing = self._prose(lines_with_keywords(prose, ("housing", "top", "bottom", "stem")))
        return MaterialComparison(
            title=f"{' vs '.join(materials)} Comparison",
            content=content or f"Comparison of {', '.join(materials)} as switch materials.",
            detailed_analysis=MaterialDetailedAnalysis(
                sound_differences=axis(("sound", "acoustic", "pitch"), "sound"),
                feel_differences=axis(("feel", "smooth", "tactile"), "feel"),
                durability_comparison=axis(("durab", "wear", "last"), "durability"),
                housing_applications=housing or "Each material is used for top housings, bottom housings or stems.",
            ),
            key_distinctions=key_differences(parsed, limit=5),
        )
