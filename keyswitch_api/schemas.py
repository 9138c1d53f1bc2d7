"""Pydantic models for the type-specific `data` payloads.

Each response type has one model. Transformers and the fallback generator
build these models and serialise them with camelCase keys, so both paths
emit the same shapes.
"""

from typing import Any, Literal

from pydantic import Field

from keyswitch_api.models import CamelModel

# =============================================================================
# Shared Blocks
# =============================================================================


class ExampleItem(CamelModel):
    """A catalog product referenced by a response."""

    name: str
    manufacturer: str | None = None
    description: str | None = None


class AnalysisSection(CamelModel):
    """A titled block of prose."""

    title: str
    content: str
    key_points: list[str] | None = None


class ItemSpecification(CamelModel):
    """Specification block for one product."""

    name: str
    manufacturer: str | None = None
    category: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    source: Literal["markdown", "catalog", "mixed", "none"] = "none"


# =============================================================================
# single_item_info
# =============================================================================


class SoundAndFeel(CamelModel):
    """Sound and feel description of a single product."""

    sound: str | None = None
    feel: str | None = None


class SingleItemInfoData(CamelModel):
    """Information about one product."""

    title: str
    overview: str
    item_name: str | None = None
    manufacturer: str | None = None
    specifications: ItemSpecification | None = None
    sound_and_feel: SoundAndFeel | None = None
    recommendations: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)
    related_items: list[ExampleItem] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# comparison
# =============================================================================


class ComparisonAnalysis(CamelModel):
    """Direct comparative analysis along shared axes."""

    feel_comparison: AnalysisSection
    sound_comparison: AnalysisSection
    build_quality_comparison: AnalysisSection
    performance_comparison: AnalysisSection


class ComparisonConclusion(CamelModel):
    """Closing summary of a comparison."""

    summary: str
    recommendations: dict[str, str] = Field(default_factory=dict)
    key_differences: list[str] = Field(default_factory=list)


class ComparisonData(CamelModel):
    """Side-by-side comparison of several products."""

    title: str
    item_names: list[str]
    overview: str
    specifications: list[ItemSpecification] = Field(default_factory=list)
    analysis: ComparisonAnalysis | None = None
    conclusion: ComparisonConclusion | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# characteristics_explanation
# =============================================================================

CharacteristicCategory = Literal["feel", "sound", "technical", "build_quality", "other"]


class CharacteristicDetail(CamelModel):
    """Explanation of one characteristic."""

    characteristic_name: str
    category: CharacteristicCategory
    explanation: str
    factors: list[str] = Field(default_factory=list)
    impact: str | None = None


class ExampleBlock(CamelModel):
    """Example products illustrating an explanation."""

    title: str
    content: str
    item_examples: list[ExampleItem] = Field(default_factory=list)


class PracticalImplications(CamelModel):
    """What an explanation means for the user."""

    user_experience: str
    key_considerations: list[str] = Field(default_factory=list)


class CharacteristicsExplanationData(CamelModel):
    """Explanation of switch characteristics."""

    title: str
    characteristics_explained: list[str]
    overview: str
    characteristic_details: list[CharacteristicDetail] = Field(default_factory=list)
    examples: ExampleBlock | None = None
    practical_implications: PracticalImplications | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# material_analysis
# =============================================================================


class MaterialProperties(CamelModel):
    """Sound, feel and durability of a material."""

    sound_characteristics: str
    feel_characteristics: str
    durability: str


class MaterialDetail(CamelModel):
    """Analysis of one material."""

    material_name: str
    properties: MaterialProperties
    advantages: list[str] = Field(default_factory=list)
    disadvantages: list[str] = Field(default_factory=list)
    item_examples: list[ExampleItem] = Field(default_factory=list)


class MaterialDetailedAnalysis(CamelModel):
    """Per-axis material comparison."""

    sound_differences: str
    feel_differences: str
    durability_comparison: str
    housing_applications: str


class MaterialComparison(CamelModel):
    """Comparison block across the analysed materials."""

    title: str
    content: str
    detailed_analysis: MaterialDetailedAnalysis
    key_distinctions: list[str] = Field(default_factory=list)


class MaterialAnalysisData(CamelModel):
    """Analysis of housing and stem materials."""

    title: str
    materials_analyzed: list[str]
    overview: str
    material_details: list[MaterialDetail] = Field(default_factory=list)
    comparisons: MaterialComparison | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# standard_answer
# =============================================================================

QueryType = Literal[
    "general_knowledge",
    "product_info",
    "troubleshooting",
    "recommendation",
    "educational",
    "other",
]


class AnswerContent(CamelModel):
    """Body of a standard answer."""

    main_answer: str
    additional_context: str | None = None
    related_information: str | None = None


class FollowUp(CamelModel):
    """Follow-up suggestions."""

    suggested_questions: list[str] = Field(default_factory=list)
    related_topics: list[str] = Field(default_factory=list)


class SourceInformation(CamelModel):
    """Where the answer's information appears to come from."""

    source_types: list[str]
    confidence_level: Literal["high", "medium", "low"]
    limitations: list[str] = Field(default_factory=list)


class StandardAnswerData(CamelModel):
    """Any answer that does not fit a specialised shape."""

    title: str
    query_type: QueryType
    content: AnswerContent
    sections: list[AnalysisSection] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)
    related_items: list[ExampleItem] = Field(default_factory=list)
    follow_up: FollowUp | None = None
    source_information: SourceInformation | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def dump_data(model: CamelModel) -> dict[str, Any]:
    """Serialise a data payload with camelCase keys, dropping unset optionals."""
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")
