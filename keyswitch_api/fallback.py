"""Degraded responses for markdown that could not be structured.

The fallback never consults the catalog or the resolver: it relies on plain
pattern scans so it still works when everything upstream has failed. Its
output always passes the output validator and is marked with
`processingMode = "fallback"` and `confidence = 0`.
"""

import re
from typing import Any

import structlog

from keyswitch_api.catalog import SEED_MANUFACTURERS
from keyswitch_api.domain_knowledge import CHARACTERISTIC_KEYWORDS, find_materials
from keyswitch_api.errors import ErrorClassification
from keyswitch_api.markdown_parser import parse_markdown
from keyswitch_api.models import ResponseType
from keyswitch_api.schemas import (
    AnswerContent,
    CharacteristicsExplanationData,
    ComparisonData,
    MaterialAnalysisData,
    SingleItemInfoData,
    SourceInformation,
    StandardAnswerData,
    dump_data,
)
from keyswitch_api.text_processing import first_paragraph, strip_inline_markdown

logger = structlog.get_logger()

PRODUCT_PATTERN = re.compile(
    rf"\b(?:{'|'.join(re.escape(m) for m in SEED_MANUFACTURERS)})"
    r"(?:\s+(?:[A-Z][\w-]*|\d+[\w-]*)){1,3}"
)
BULLET_PATTERN = re.compile(r"^\s*[-*+]\s+(.+)$", re.MULTILINE)
FIRST_HEADING = re.compile(r"^\s*#{1,6}\s+(.+)$", re.MULTILINE)

NO_DETAIL = "Detailed information could not be extracted from this response."
FALLBACK_LIMITATIONS = [
    "Content was not fully structured",
    "Product names were not checked against the catalog",
    "Some fields contain placeholder text",
]


def _title(markdown: str, response_type: ResponseType) -> str:
    heading = FIRST_HEADING.search(markdown)
    candidates = [heading.group(1)] if heading else []
    candidates += [line for line in markdown.split("\n") if line.strip()][:1]
    for candidate in candidates:
        title = strip_inline_markdown(candidate.strip().lstrip("#").strip())[:100].strip()
        if title:
            return title
    return {
        ResponseType.COMPARISON: "Switch Comparison",
        ResponseType.CHARACTERISTICS_EXPLANATION: "Switch Characteristics",
        ResponseType.MATERIAL_ANALYSIS: "Switch Materials",
    }.get(response_type, "Response")


def _products(markdown: str) -> list[str]:
    found: list[str] = []
    for match in PRODUCT_PATTERN.finditer(markdown):
        name = match.group(0).strip()
        if name not in found:
            found.append(name)
    return found[:5]


def _characteristics(markdown: str) -> list[str]:
    lowered = markdown.lower()
    return [keyword.title() for keyword in CHARACTERISTIC_KEYWORDS if keyword in lowered]


def _key_points(markdown: str) -> list[str]:
    points: list[str] = []
    for match in BULLET_PATTERN.finditer(markdown):
        text = strip_inline_markdown(match.group(1))
        if 10 < len(text) < 150 and text not in points:
            points.append(text)
    return points[:5]


def _overview(markdown: str) -> str:
    if not markdown.strip():
        return NO_DETAIL
    opening = strip_inline_markdown(first_paragraph(parse_markdown(markdown)))
    return opening[:500] or NO_DETAIL


def fallback_metadata(
    error: ErrorClassification,
    requested_type: str,
    attempts: int = 0,
) -> dict[str, Any]:
    """Quality metadata marking a degraded response."""
    warnings = [
        "Structured parsing failed; showing a simplified response",
        error.message,
    ]
    return {
        "confidence": 0,
        "processingMode": "fallback",
        "errorKind": error.kind.value,
        "warnings": warnings,
        "limitations": list(FALLBACK_LIMITATIONS),
        "requestedType": requested_type,
        "attempts": attempts,
    }


def fallback_response_type(response_type: ResponseType | str) -> ResponseType:
    """Shape used by the fallback; unknown types get the standard answer shape."""
    return ResponseType.from_value(response_type) or ResponseType.STANDARD_ANSWER


def generate(
    markdown: str | None,
    response_type: ResponseType | str,
    error: ErrorClassification,
    attempts: int = 0,
) -> dict[str, Any]:
    """Build a validator-passing payload from heuristic extraction.

    Args:
        markdown: The original markdown; may be empty or None.
        response_type: Requested response type, known or not.
        error: Classification of the failure that triggered the fallback.
        attempts: Transform attempts made before giving up.

    Returns:
        Serialised data payload for the fallback response type.
    """
    text = markdown or ""
    shape = fallback_response_type(response_type)
    requested = response_type.value if isinstance(response_type, ResponseType) else str(response_type)
    metadata = fallback_metadata(error, requested, attempts)

    title = _title(text, shape)
    overview = _overview(text)
    products = _products(text)
    key_points = _key_points(text)

    if shape is ResponseType.SINGLE_ITEM_INFO:
        model = SingleItemInfoData(
            title=title,
            overview=overview,
            item_name=products[0] if products else None,
            key_points=key_points,
            metadata=metadata,
        )
    elif shape is ResponseType.COMPARISON:
        model = ComparisonData(
            title=title,
            item_names=products,
            overview=overview,
            metadata=metadata,
        )
    elif shape is ResponseType.CHARACTERISTICS_EXPLANATION:
        model = CharacteristicsExplanationData(
            title=title,
            characteristics_explained=_characteristics(text),
            overview=overview,
            metadata=metadata,
        )
    elif shape is ResponseType.MATERIAL_ANALYSIS:
        model = MaterialAnalysisData(
            title=title,
            materials_analyzed=find_materials(text),
            overview=overview,
            metadata=metadata,
        )
    else:
        model = StandardAnswerData(
            title=title,
            query_type="other",
            content=AnswerContent(
                main_answer=overview if overview != NO_DETAIL else "The response could not be processed.",
            ),
            key_points=key_points,
            source_information=SourceInformation(
                source_types=["unstructured_response"],
                confidence_level="low",
                limitations=list(FALLBACK_LIMITATIONS),
            ),
            metadata=metadata,
        )

    logger.info(
        "fallback_generated",
        response_type=shape.value,
        requested_type=requested,
        error_kind=error.kind.value,
        products_found=len(products),
    )
    return dump_data(model)

