"""Error taxonomy for the structuring pipeline.

Transform attempts never let exceptions escape: the attempt boundary turns
them into ErrorClassification values that the pipeline inspects to decide
between retrying and falling back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure categories recognised by the pipeline."""

    INVALID_INPUT = "INVALID_INPUT"
    TRANSFORMER_FAILED = "TRANSFORMER_FAILED"
    INVALID_OUTPUT_STRUCTURE = "INVALID_OUTPUT_STRUCTURE"
    UNKNOWN_RESPONSE_TYPE = "UNKNOWN_RESPONSE_TYPE"
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"
    CONTENT_VALIDATION_FAILED = "CONTENT_VALIDATION_FAILED"
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"


NON_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.INVALID_INPUT,
        ErrorKind.UNKNOWN_RESPONSE_TYPE,
        ErrorKind.INSUFFICIENT_CONTENT,
        ErrorKind.CONTENT_VALIDATION_FAILED,
    }
)


@dataclass(frozen=True)
class ErrorClassification:
    """A classified failure, produced and consumed within one invocation."""

    kind: ErrorKind
    retryable: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)


def classify(kind: ErrorKind, message: str, **details: Any) -> ErrorClassification:
    """Build a classification, deriving retryability from the kind."""
    return ErrorClassification(
        kind=kind,
        retryable=kind not in NON_RETRYABLE_KINDS,
        message=message,
        details=details,
    )


class TransformError(Exception):
    """Raised inside a transformer to report a specific failure kind."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class CatalogUnavailableError(Exception):
    """Raised by catalog repositories when the store cannot be queried."""

    pass


def classify_exception(exc: Exception, transformer: str) -> ErrorClassification:
    """Translate an exception raised during a transform attempt.

    Args:
        exc: The exception caught at the attempt boundary.
        transformer: Name of the transformer that raised it.

    Returns:
        ErrorClassification carrying the transformer's declared kind, or
        TRANSFORMER_FAILED for anything unexpected.
    """
    if isinstance(exc, TransformError):
        return classify(exc.kind, exc.message, transformer=transformer)
    return classify(
        ErrorKind.TRANSFORMER_FAILED,
        f"{transformer} transformation failed: {exc}",
        transformer=transformer,
        exception=type(exc).__name__,
    )
