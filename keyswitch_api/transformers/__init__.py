"""Response transformers, one per response type."""

from keyswitch_api.entity_resolver import EntityResolver
from keyswitch_api.models import ResponseType
from keyswitch_api.transformers.base import ResponseTransformer
from keyswitch_api.transformers.characteristics import CharacteristicsTransformer
from keyswitch_api.transformers.comparison import ComparisonTransformer
from keyswitch_api.transformers.material_analysis import MaterialAnalysisTransformer
from keyswitch_api.transformers.single_item import SingleItemTransformer
from keyswitch_api.transformers.standard_answer import StandardAnswerTransformer

TRANSFORMER_CLASSES: dict[ResponseType, type[ResponseTransformer]] = {
    ResponseType.SINGLE_ITEM_INFO: SingleItemTransformer,
    ResponseType.COMPARISON: ComparisonTransformer,
    ResponseType.CHARACTERISTICS_EXPLANATION: CharacteristicsTransformer,
    ResponseType.MATERIAL_ANALYSIS: MaterialAnalysisTransformer,
    ResponseType.STANDARD_ANSWER: StandardAnswerTransformer,
}


def build_transformers(resolver: EntityResolver) -> dict[ResponseType, ResponseTransformer]:
    """Instantiate every transformer around a shared resolver."""
    return {response_type: cls(resolver) for response_type, cls in TRANSFORMER_CLASSES.items()}


__all__ = [
    "CharacteristicsTransformer",
    "ComparisonTransformer",
    "MaterialAnalysisTransformer",
    "ResponseTransformer",
    "SingleItemTransformer",
    "StandardAnswerTransformer",
    "TRANSFORMER_CLASSES",
    "build_transformers",
]
