"""Pydantic models for API requests, responses, and pipeline output."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Response Types
# =============================================================================


class ResponseType(str, Enum):
    """Closed set of output shapes the pipeline can produce."""

    SINGLE_ITEM_INFO = "single_item_info"
    COMPARISON = "comparison"
    CHARACTERISTICS_EXPLANATION = "characteristics_explanation"
    MATERIAL_ANALYSIS = "material_analysis"
    STANDARD_ANSWER = "standard_answer"

    @classmethod
    def from_value(cls, value: "str | ResponseType") -> "ResponseType | None":
        """Coerce a raw value into a ResponseType, or None when unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# =============================================================================
# Structuring API Models
# =============================================================================


class StructureRequest(CamelModel):
    """Request body for the structuring endpoint.

    The markdown and response type are deliberately unconstrained here: the
    pipeline validates them itself and answers with a fallback response.
    """

    markdown: str = Field(default="", description="Raw markdown answer from the LLM")
    response_type: str = Field(..., description="Requested response shape")
    metadata: dict[str, Any] | None = Field(default=None, description="Caller metadata")


class StructuredContent(CamelModel):
    """Final pipeline output."""

    response_type: ResponseType = Field(..., description="Shape of the data payload")
    data: dict[str, Any] = Field(..., description="Type-specific structured payload")
    version: str = Field(..., description="Structure version")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] | None = Field(default=None, description="Caller and quality metadata")

    @property
    def is_fallback(self) -> bool:
        """Check whether this content was produced by the fallback generator."""
        return bool(self.metadata and self.metadata.get("processingMode") == "fallback")


# =============================================================================
# Health API Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"] = Field(..., description="Service status")
    catalog_source: str = Field(..., description="Where the catalog snapshot came from")
    catalog_products: int = Field(..., description="Number of products in the catalog snapshot")
    version: str = Field(..., description="API version")
