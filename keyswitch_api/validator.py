"""Required-field validation of transformer output."""

from dataclasses import dataclass, field
from typing import Any

from keyswitch_api.models import ResponseType

REQUIRED_FIELDS: dict[ResponseType, tuple[str, ...]] = {
    ResponseType.SINGLE_ITEM_INFO: ("title", "overview"),
    ResponseType.COMPARISON: ("title", "itemNames", "overview"),
    ResponseType.CHARACTERISTICS_EXPLANATION: ("title", "characteristicsExplained", "overview"),
    ResponseType.MATERIAL_ANALYSIS: ("title", "materialsAnalyzed", "overview"),
    ResponseType.STANDARD_ANSWER: ("title", "queryType", "content.mainAnswer"),
}


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    missing_fields: tuple[str, ...] = field(default_factory=tuple)


def _lookup(data: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; None when any step is absent."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate(data: Any, response_type: ResponseType | str) -> ValidationResult:
    """Check that `data` carries every required field for its response type.

    A field is missing when it is absent, None or a blank string. Lists,
    including empty ones, count as present.
    """
    resolved = ResponseType.from_value(response_type)
    if resolved is None:
        return ValidationResult(is_valid=False, missing_fields=("responseType",))
    if not isinstance(data, dict):
        return ValidationResult(is_valid=False, missing_fields=REQUIRED_FIELDS[resolved])

    missing = tuple(path for path in REQUIRED_FIELDS[resolved] if _is_missing(_lookup(data, path)))
    return ValidationResult(is_valid=not missing, missing_fields=missing)
