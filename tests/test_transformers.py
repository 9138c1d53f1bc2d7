"""Tests for the response transformers."""

import pytest

from keyswitch_api.domain_knowledge import find_materials
from keyswitch_api.errors import ErrorKind, TransformError
from keyswitch_api.markdown_parser import parse_markdown
from keyswitch_api.models import ResponseType
from keyswitch_api.transformers import (
    CharacteristicsTransformer,
    ComparisonTransformer,
    MaterialAnalysisTransformer,
    SingleItemTransformer,
    StandardAnswerTransformer,
    build_transformers,
)
from keyswitch_api.validator import validate

COMPARISON_MARKDOWN = """# Cherry MX Red vs Gateron Yellow

Both are popular linear switches.

| Spec | Cherry MX Red | Gateron Yellow |
|------|---------------|----------------|
| Actuation Force | 45g | 50g |
| Housing | Nylon | PC/Nylon |

## Sound

The Gateron Yellow sounds deeper, whereas the Cherry MX Red is higher pitched.

## Conclusion

Pick the Gateron Yellow if you want value for money.
"""

CHARACTERISTICS_MARKDOWN = """Switch feel comes down to a few things.

- Actuation force: how hard you press
- Travel distance: how far the key moves

Sound matters too.

- Thock: a deep, muted sound
- Clack: a sharp, higher pitch
"""

MATERIAL_MARKDOWN = """# PC vs Nylon Housings

Housing material changes the sound.

## Polycarbonate

PC housings sound bright and crisp.

Pros:
- Lets RGB lighting through clearly
- Sharp, clean sound signature

Cons:
- Can sound harsh on some boards

## Nylon

Nylon housings sound deeper and more muted.
"""

STANDARD_MARKDOWN = """# How to Lube Switches

Lubing makes switches smoother and quieter.

## What You Need

- A thin brush for the stems
- Krytox 205g0 lubricant

## Steps

1. Open the switch housing
2. Lube the stem and spring
"""


@pytest.fixture
def transformers(resolver):
    return build_transformers(resolver)


class TestBuildTransformers:
    """Tests for the transformer registry."""

    def test_one_transformer_per_type(self, transformers):
        """Test every response type has a transformer."""
        assert set(transformers) == set(ResponseType)
        for response_type, transformer in transformers.items():
            assert transformer.response_type is response_type

    @pytest.mark.parametrize("response_type", list(ResponseType))
    def test_blank_markdown_is_insufficient(self, transformers, response_type):
        """Test that blank markdown raises a non-retryable error."""
        with pytest.raises(TransformError) as exc_info:
            transformers[response_type].transform(parse_markdown("   \n  "))
        assert exc_info.value.kind is ErrorKind.INSUFFICIENT_CONTENT

    @pytest.mark.parametrize(
        "response_type,markdown",
        [
            (ResponseType.SINGLE_ITEM_INFO, "# Cherry MX Red\nLinear switch, 45g actuation."),
            (ResponseType.COMPARISON, COMPARISON_MARKDOWN),
            (ResponseType.CHARACTERISTICS_EXPLANATION, CHARACTERISTICS_MARKDOWN),
            (ResponseType.MATERIAL_ANALYSIS, MATERIAL_MARKDOWN),
            (ResponseType.STANDARD_ANSWER, STANDARD_MARKDOWN),
        ],
    )
    def test_output_passes_validator(self, transformers, response_type, markdown):
        """Test transformer output carries the required fields."""
        data = transformers[response_type].transform(parse_markdown(markdown))
        assert validate(data, response_type).is_valid is True


class TestSingleItemTransformer:
    """Tests for SingleItemTransformer."""

    def test_heading_names_item(self, resolver):
        """Test a product heading becomes the title and the item."""
        data = SingleItemTransformer(resolver).transform(
            parse_markdown("# Cherry MX Red\nLinear switch, 45g actuation.")
        )

        assert data["title"] == "Cherry MX Red"
        assert data["overview"] == "Linear switch, 45g actuation."
        assert data["itemName"] == "Cherry MX Red"
        assert data["manufacturer"] == "Cherry"
        assert data["soundAndFeel"]["feel"] == "Linear switch, 45g actuation."
        assert data["metadata"]["itemResolved"] is True

    def test_specifications_from_catalog(self, resolver):
        """Test catalog values fill a specification block."""
        data = SingleItemTransformer(resolver).transform(
            parse_markdown("# Cherry MX Red\nLinear switch, 45g actuation.")
        )

        specifications = data["specifications"]
        assert specifications["source"] == "catalog"
        assert specifications["attributes"]["Actuation Force"] == "45g"
        assert specifications["attributes"]["Type"] == "Linear"

    def test_markdown_table_takes_precedence(self, resolver):
        """Test key/value table attributes override catalog values."""
        markdown = """# Gateron Yellow

A budget linear favourite.

| Spec | Value |
|------|-------|
| Actuation Force | 52g |
"""
        data = SingleItemTransformer(resolver).transform(parse_markdown(markdown))

        specifications = data["specifications"]
        assert specifications["source"] == "mixed"
        assert specifications["attributes"]["Actuation Force"] == "52g"
        assert specifications["attributes"]["Stem"] == "POM"

    def test_unresolved_item(self, resolver):
        """Test prose without products still produces a payload."""
        data = SingleItemTransformer(resolver).transform(
            parse_markdown("This mystery switch is smooth and quiet.")
        )

        assert data["title"] == "This mystery switch is smooth and quiet"
        assert "itemName" not in data
        assert data["metadata"]["itemResolved"] is False


class TestComparisonTransformer:
    """Tests for ComparisonTransformer."""

    def test_items_and_title(self, resolver):
        """Test compared items come from the markdown in order."""
        data = ComparisonTransformer(resolver).transform(parse_markdown(COMPARISON_MARKDOWN))

        assert data["title"] == "Cherry MX Red vs Gateron Yellow"
        assert data["itemNames"] == ["Cherry MX Red", "Gateron Yellow"]
        assert data["overview"] == "Both are popular linear switches."

    def test_specifications_from_table_columns(self, resolver):
        """Test per-item attributes are read from product columns."""
        data = ComparisonTransformer(resolver).transform(parse_markdown(COMPARISON_MARKDOWN))

        red, yellow = data["specifications"]
        assert red["attributes"]["Actuation Force"] == "45g"
        assert red["attributes"]["Housing"] == "Nylon"
        assert yellow["attributes"]["Actuation Force"] == "50g"
        assert red["source"] == "mixed"

    def test_analysis_axes(self, resolver):
        """Test covered and uncovered analysis axes."""
        data = ComparisonTransformer(resolver).transform(parse_markdown(COMPARISON_MARKDOWN))

        analysis = data["analysis"]
        assert analysis["soundComparison"]["content"].startswith("The Gateron Yellow sounds deeper")
        assert analysis["feelComparison"]["content"] == "Not covered in this comparison."
        assert data["metadata"]["analysisAxes"] == ["Sound Comparison"]

    def test_conclusion(self, resolver):
        """Test the conclusion summary and key differences."""
        data = ComparisonTransformer(resolver).transform(parse_markdown(COMPARISON_MARKDOWN))

        conclusion = data["conclusion"]
        assert conclusion["summary"] == "Pick the Gateron Yellow if you want value for money."
        assert conclusion["keyDifferences"] == [
            "The Gateron Yellow sounds deeper, whereas the Cherry MX Red is higher pitched."
        ]

    def test_unresolved_versus_heading(self, resolver):
        """Test raw heading sides are used when nothing resolves."""
        data = ComparisonTransformer(resolver).transform(
            parse_markdown("# Foo Switch vs Bar Switch\n\nThey differ in weight.")
        )
        assert data["itemNames"] == ["Foo Switch", "Bar Switch"]

    def test_brand_level_comparison_keeps_raw_names(self, resolver):
        """Test manufacturer names are not narrowed to one of their switches."""
        data = ComparisonTransformer(resolver).transform(
            parse_markdown(
                "# Gateron vs Cherry\n\n"
                "Gateron switches feel smoother; Cherry switches feel scratchier.\n"
            )
        )

        assert data["itemNames"] == ["Gateron", "Cherry"]
        assert [spec["manufacturer"] for spec in data["specifications"]] == ["Gateron", "Cherry"]
        for spec in data["specifications"]:
            assert spec["attributes"] == {}
            assert spec["source"] == "none"
        assert data["metadata"]["itemsResolved"] == 0

    def test_brand_row_not_attributed_to_product(self, resolver):
        """Test a table row naming only a manufacturer is not read as one of its products."""
        markdown = """# Gateron Red vs Cherry MX Black

| Brand | Actuation Force | Travel |
|-------|-----------------|--------|
| Gateron | 40g | 4mm |
"""
        data = ComparisonTransformer(resolver).transform(parse_markdown(markdown))

        assert data["itemNames"] == ["Gateron Red", "Cherry MX Black"]
        red = data["specifications"][0]
        assert red["attributes"]["Actuation Force"] == "45g"
        assert "Travel" not in red["attributes"]
        assert red["source"] == "catalog"

    def test_no_items_is_insufficient(self, resolver):
        """Test that a comparison without items is rejected."""
        with pytest.raises(TransformError) as exc_info:
            ComparisonTransformer(resolver).transform(
                parse_markdown("Linear switches are smooth and quiet overall.")
            )
        assert exc_info.value.kind is ErrorKind.INSUFFICIENT_CONTENT


class TestCharacteristicsTransformer:
    """Tests for CharacteristicsTransformer."""

    def test_characteristics_from_lists_without_headings(self, resolver):
        """Test labelled list items name the characteristics."""
        data = CharacteristicsTransformer(resolver).transform(parse_markdown(CHARACTERISTICS_MARKDOWN))

        assert data["characteristicsExplained"] == [
            "Actuation force",
            "Travel distance",
            "Thock",
            "Clack",
        ]
        assert data["title"] == "Switch feel comes down to a few things"

    def test_details(self, resolver):
        """Test explanations and categories per characteristic."""
        data = CharacteristicsTransformer(resolver).transform(parse_markdown(CHARACTERISTICS_MARKDOWN))

        details = {d["characteristicName"]: d for d in data["characteristicDetails"]}
        assert details["Actuation force"]["explanation"] == "how hard you press"
        assert details["Actuation force"]["category"] == "technical"
        assert details["Thock"]["category"] == "sound"

    def test_section_titles(self, resolver):
        """Test section titles name characteristics when lists have no labels."""
        markdown = """# Switch Basics

## Overview

Switches vary in several ways.

## Tactility

A bump partway down the press.

## Spring Weight

How much force the spring needs.
"""
        data = CharacteristicsTransformer(resolver).transform(parse_markdown(markdown))
        assert data["characteristicsExplained"] == ["Tactility", "Spring Weight"]

    def test_examples_from_mentions(self, resolver):
        """Test mentioned products become examples."""
        markdown = CHARACTERISTICS_MARKDOWN + "\nThe Cherry MX Red is a classic linear switch.\n"
        data = CharacteristicsTransformer(resolver).transform(parse_markdown(markdown))

        examples = data["examples"]["itemExamples"]
        assert examples[0]["name"] == "Cherry MX Red"
        assert examples[0]["manufacturer"] == "Cherry"


class TestMaterialAnalysisTransformer:
    """Tests for MaterialAnalysisTransformer."""

    def test_materials_in_order(self, resolver):
        """Test materials are detected in order of mention."""
        data = MaterialAnalysisTransformer(resolver).transform(parse_markdown(MATERIAL_MARKDOWN))

        assert data["materialsAnalyzed"] == ["Polycarbonate", "Nylon"]
        assert data["title"] == "PC vs Nylon Housings"

    def test_pros_and_cons_from_markdown(self, resolver):
        """Test advantages and disadvantages follow their marker lines."""
        data = MaterialAnalysisTransformer(resolver).transform(parse_markdown(MATERIAL_MARKDOWN))

        polycarbonate = data["materialDetails"][0]
        assert polycarbonate["advantages"] == [
            "Lets RGB lighting through clearly",
            "Sharp, clean sound signature",
        ]
        assert polycarbonate["disadvantages"] == ["Can sound harsh on some boards"]

    def test_templates_fill_gaps(self, resolver):
        """Test reference profiles fill points the markdown lacks."""
        data = MaterialAnalysisTransformer(resolver).transform(parse_markdown(MATERIAL_MARKDOWN))

        nylon = data["materialDetails"][1]
        assert nylon["advantages"][0] == "Deep, 'thocky' sound profile"
        assert nylon["itemExamples"][0]["name"] == "Cherry MX Black"

    def test_comparison_block(self, resolver):
        """Test a comparison block is built for several materials."""
        data = MaterialAnalysisTransformer(resolver).transform(parse_markdown(MATERIAL_MARKDOWN))

        comparison = data["comparisons"]
        assert comparison["title"] == "Polycarbonate vs Nylon Comparison"
        assert comparison["content"] == "Housing material changes the sound."

    def test_spring_and_gaming_mentions_are_not_materials(self, resolver):
        """Test spring steel and gaming PCs are not counted as housing materials."""
        markdown = """# POM vs Nylon Housings

POM housings sound sharper than nylon ones. Both ship with stainless steel springs
and suit a PC gaming setup.
"""
        data = MaterialAnalysisTransformer(resolver).transform(parse_markdown(markdown))

        assert data["materialsAnalyzed"] == ["POM", "Nylon"]

    def test_find_materials_collocations(self):
        """Test alias context decides whether a mention is a material."""
        assert find_materials("A gaming PC with gold-plated steel springs") == []
        assert find_materials("A steel plate over a PC top housing") == ["Steel", "Polycarbonate"]
        assert find_materials("Steel springs, then a steel plate") == ["Steel"]

    def test_single_material_has_no_comparison(self, resolver):
        """Test no comparison block for one material."""
        data = MaterialAnalysisTransformer(resolver).transform(
            parse_markdown("POM stems are self-lubricating and very smooth.")
        )
        assert data["materialsAnalyzed"] == ["POM"]
        assert "comparisons" not in data


class TestStandardAnswerTransformer:
    """Tests for StandardAnswerTransformer."""

    def test_structured_answer(self, resolver):
        """Test content, sections and key points of a structured answer."""
        data = StandardAnswerTransformer(resolver).transform(parse_markdown(STANDARD_MARKDOWN))

        assert data["title"] == "How to Lube Switches"
        assert data["queryType"] == "educational"
        assert data["content"]["mainAnswer"] == "Lubing makes switches smoother and quieter."
        assert data["content"]["additionalContext"].startswith("What You Need")
        assert [s["title"] for s in data["sections"]] == [
            "How to Lube Switches",
            "What You Need",
            "Steps",
        ]
        assert "A thin brush for the stems" in data["keyPoints"]
        assert data["sourceInformation"]["confidenceLevel"] == "medium"
        assert data["metadata"]["technicalLevel"] == "intermediate"
        assert data["metadata"]["responseLength"] == "brief"

    def test_plain_prose_answer(self, resolver):
        """Test an unstructured answer."""
        text = "Linear switches have no tactile bump. They feel smooth from top to bottom."
        data = StandardAnswerTransformer(resolver).transform(parse_markdown(text))

        assert data["content"]["mainAnswer"] == text
        assert data["sections"] == []
        assert data["sourceInformation"]["confidenceLevel"] == "low"
        assert data["sourceInformation"]["limitations"]

    def test_product_info_query(self, resolver):
        """Test product mentions with spec keywords give product_info."""
        data = StandardAnswerTransformer(resolver).transform(
            parse_markdown("Here are the specs of the Gateron Yellow switch.")
        )
        assert data["queryType"] == "product_info"
        assert data["relatedItems"][0]["name"] == "Gateron Yellow"
        assert data["sourceInformation"]["sourceTypes"][0] == "switch_database"
