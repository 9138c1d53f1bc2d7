"""Tests for Pydantic models and the error taxonomy."""

import pytest
from pydantic import ValidationError

from keyswitch_api.errors import (
    NON_RETRYABLE_KINDS,
    ErrorKind,
    TransformError,
    classify,
    classify_exception,
)
from keyswitch_api.models import ResponseType, StructuredContent, StructureRequest
from keyswitch_api.schemas import AnswerContent, StandardAnswerData, dump_data


class TestResponseType:
    """Tests for ResponseType."""

    def test_from_value(self):
        """Test coercion of raw values."""
        assert ResponseType.from_value("comparison") is ResponseType.COMPARISON
        assert ResponseType.from_value(" Material_Analysis ") is ResponseType.MATERIAL_ANALYSIS
        assert ResponseType.from_value(ResponseType.STANDARD_ANSWER) is ResponseType.STANDARD_ANSWER
        assert ResponseType.from_value("keycap_review") is None


class TestStructureRequest:
    """Tests for StructureRequest model."""

    def test_camel_case_input(self):
        """Test camelCase aliases."""
        request = StructureRequest.model_validate({"markdown": "text", "responseType": "comparison"})
        assert request.response_type == "comparison"
        assert request.metadata is None

    def test_markdown_defaults_to_empty(self):
        """Test missing markdown is left to pipeline validation."""
        request = StructureRequest(response_type="comparison")
        assert request.markdown == ""

    def test_response_type_required(self):
        """Test response type is required."""
        with pytest.raises(ValidationError):
            StructureRequest.model_validate({"markdown": "text"})


class TestStructuredContent:
    """Tests for StructuredContent model."""

    def test_is_fallback(self):
        """Test fallback detection from metadata."""
        degraded = StructuredContent(
            response_type=ResponseType.COMPARISON,
            data={},
            version="1.0.0",
            metadata={"processingMode": "fallback"},
        )
        normal = StructuredContent(response_type=ResponseType.COMPARISON, data={}, version="1.0.0")

        assert degraded.is_fallback is True
        assert normal.is_fallback is False

    def test_serialised_with_camel_case(self):
        """Test output keys are camelCase."""
        content = StructuredContent(response_type=ResponseType.COMPARISON, data={}, version="1.0.0")
        dumped = content.model_dump(by_alias=True)
        assert "responseType" in dumped
        assert "generatedAt" in dumped


class TestSchemas:
    """Tests for payload schemas."""

    def test_dump_data_drops_none(self):
        """Test unset optionals are omitted and keys are camelCase."""
        data = dump_data(
            StandardAnswerData(
                title="Answer",
                query_type="other",
                content=AnswerContent(main_answer="Yes."),
            )
        )
        assert data["queryType"] == "other"
        assert data["content"] == {"mainAnswer": "Yes."}
        assert "followUp" not in data

    def test_query_type_is_closed(self):
        """Test unknown query types are rejected."""
        with pytest.raises(ValidationError):
            StandardAnswerData(
                title="Answer",
                query_type="gossip",
                content=AnswerContent(main_answer="Yes."),
            )


class TestErrors:
    """Tests for error classification."""

    def test_retryability_by_kind(self):
        """Test retryability is derived from the kind."""
        for kind in ErrorKind:
            assert classify(kind, "msg").retryable is (kind not in NON_RETRYABLE_KINDS)
        assert classify(ErrorKind.TRANSFORMER_FAILED, "x").retryable is True
        assert classify(ErrorKind.INVALID_INPUT, "x").retryable is False

    def test_classify_transform_error(self):
        """Test declared kinds are kept."""
        error = classify_exception(
            TransformError(ErrorKind.INSUFFICIENT_CONTENT, "no items"), "ComparisonTransformer"
        )
        assert error.kind is ErrorKind.INSUFFICIENT_CONTENT
        assert error.message == "no items"
        assert error.details["transformer"] == "ComparisonTransformer"

    def test_classify_unexpected_exception(self):
        """Test unexpected exceptions become TRANSFORMER_FAILED."""
        error = classify_exception(KeyError("title"), "SingleItemTransformer")
        assert error.kind is ErrorKind.TRANSFORMER_FAILED
        assert error.retryable is True
        assert error.message.startswith("SingleItemTransformer transformation failed")
        assert error.details["exception"] == "KeyError"
