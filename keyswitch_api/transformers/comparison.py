"""comparison: several switches compared along shared axes."""

from keyswitch_api.errors import ErrorKind, TransformError
from keyswitch_api.markdown_parser import ParsedMarkdown
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import (
    AnalysisSection,
    ComparisonAnalysis,
    ComparisonConclusion,
    ComparisonData,
)
from keyswitch_api.text_processing import (
    clean_points,
    key_differences,
    lines_with_keywords,
    paragraphs,
    section_text,
    split_label,
    strip_inline_markdown,
)
from keyswitch_api.transformers.base import ResponseTransformer

# Axis title, section-title keywords, line keywords
ANALYSIS_AXES = (
    ("Feel Comparison", ("feel", "tactile", "typing experience"), ("feel", "tactile", "smooth", "typing")),
    ("Sound Comparison", ("sound", "acoustic", "noise"), ("sound", "acoustic", "noise", "loud", "quiet")),
    ("Build Quality Comparison", ("build", "quality", "construction"), ("build", "quality", "construction", "housing")),
    ("Performance Comparison", ("performance", "gaming", "speed"), ("performance", "speed", "accuracy", "gaming")),
)

CONCLUSION_TITLES = ("conclusion", "summary", "overall", "verdict", "bottom line", "final")
RECOMMENDATION_TITLES = ("recommend", "which to choose", "choose", "best for")
RECOMMENDATION_KEYWORDS = ("recommend", "best for", "choose", "go with", "ideal for", "better for")

NOT_COVERED = "Not covered in this comparison."


class ComparisonTransformer(ResponseTransformer):
    response_type = ResponseType.COMPARISON
    default_title = "Switch Comparison"

    def build(self, parsed: ParsedMarkdown) -> ComparisonData:
        item_names = self._item_names(parsed)
        if not item_names:
            raise TransformError(
                ErrorKind.INSUFFICIENT_CONTENT,
                "No items to compare were found in the markdown",
            )

        title = self.extract_title(parsed, default=" vs ".join(item_names))
        specifications = [
            self.build_specification(name, self.table_attributes(parsed, name))
            for name in item_names
        ]
        analysis = self._analysis(parsed)

        return ComparisonData(
            title=title,
            item_names=item_names,
            overview=self.extract_overview(parsed),
            specifications=specifications,
            analysis=analysis,
            conclusion=self._conclusion(parsed, item_names),
            metadata=self.base_metadata(
                parsed,
                itemsCompared=len(item_names),
                itemsResolved=sum(1 for name in item_names if self.resolver.lookup_entry(name)),
                analysisAxes=self._covered_axes(analysis),
            ),
        )

    def _item_names(self, parsed: ParsedMarkdown) -> list[str]:
        """Resolved mentions, else the raw sides of an 'A vs B' heading."""
        names = self.find_mentions(parsed)
        if names:
            return names
        return [strip_inline_markdown(candidate) for candidate in self.versus_candidates(parsed)]

    def _analysis(self, parsed: ParsedMarkdown) -> ComparisonAnalysis | None:
        blocks: list[AnalysisSection] = []
        covered = False
        for axis_title, title_keywords, line_keywords in ANALYSIS_AXES:
            block = self._axis_block(parsed, axis_title, title_keywords, line_keywords)
            covered = covered or block.content != NOT_COVERED
            blocks.append(block)
        if not covered:
            return None
        feel, sound, build, performance = blocks
        return ComparisonAnalysis(
            feel_comparison=feel,
            sound_comparison=sound,
            build_quality_comparison=build,
            performance_comparison=performance,
        )

    def _axis_block(
        self,
        parsed: ParsedMarkdown,
        axis_title: str,
        title_keywords: tuple[str, ...],
        line_keywords: tuple[str, ...],
    ) -> AnalysisSection:
        section = self.section_by_title(parsed, title_keywords)
        if section is not None:
            items = clean_points(self.section_items(parsed, section), limit=5)
            return AnalysisSection(
                title=axis_title,
                content=strip_inline_markdown(section_text(section)) or NOT_COVERED,
                key_points=items or None,
            )

        prose = "\n".join(paragraphs(parsed.raw.split("\n")))
        lines = lines_with_keywords(prose, line_keywords)
        return AnalysisSection(title=axis_title, content=strip_inline_markdown(lines) or NOT_COVERED)

    def _covered_axes(self, analysis: ComparisonAnalysis | None) -> list[str]:
        if analysis is None:
            return []
        blocks = (
            analysis.feel_comparison,
            analysis.sound_comparison,
            analysis.build_quality_comparison,
            analysis.performance_comparison,
        )
        return [block.title for block in blocks if block.content != NOT_COVERED]

    def _conclusion(self, parsed: ParsedMarkdown, item_names: list[str]) -> ComparisonConclusion | None:
        section = self.section_by_title(parsed, CONCLUSION_TITLES)
        if section is not None:
            found = paragraphs(section.content)
            summary = " ".join(found) if found else section_text(section)
        else:
            found = paragraphs(parsed.raw.split("\n"))
            summary = found[-1] if len(found) > 1 else ""

        recommendations = self._recommendations(parsed, item_names)
        differences = key_differences(parsed)
        if not summary and not recommendations and not differences:
            return None
        return ComparisonConclusion(
            summary=strip_inline_markdown(summary) or "See the comparison above.",
            recommendations=recommendations,
            key_differences=differences,
        )

    def _recommendations(self, parsed: ParsedMarkdown, item_names: list[str]) -> dict[str, str]:
        """Map a use case or product to the advice given for it."""
        recommendations: dict[str, str] = {}
        section = self.section_by_title(parsed, RECOMMENDATION_TITLES)
        if section is not None:
            for item in self.section_items(parsed, section):
                label, advice = split_label(item)
                if label and advice:
                    recommendations[strip_inline_markdown(label)] = strip_inline_markdown(advice)
            if recommendations:
                return recommendations

        lines = lines_with_keywords(parsed.raw, RECOMMENDATION_KEYWORDS)
        for line in lines.split("\n"):
            cleaned = strip_inline_markdown(line.lstrip("-*+ "))
            if not cleaned or cleaned.startswith("#"):
                continue
            for name in item_names:
                if name.lower() in cleaned.lower() and name not in recommendations:
                    recommendations[name] = cleaned
                    break
        return recommendations
