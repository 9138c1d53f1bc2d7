"""Retry orchestrator: markdown in, StructuredContent out.

    VALIDATING_INPUT -> TRANSFORMING -> VALIDATING_OUTPUT -> DONE
                             ^                  |
                             +--- RETRYING <----+  (retryable, attempts left)
                                                +--> FALLBACK

Every path returns a StructuredContent. Transform attempts never raise:
failures come back as ErrorClassification values inside an AttemptResult.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from keyswitch_api import fallback
from keyswitch_api.config import get_settings
from keyswitch_api.entity_resolver import EntityResolver, get_entity_resolver
from keyswitch_api.errors import ErrorClassification, ErrorKind, classify, classify_exception
from keyswitch_api.markdown_parser import ParsedMarkdown, parse_markdown
from keyswitch_api.models import ResponseType, StructuredContent
from keyswitch_api.observability import ParseOutcomeLog, log_parse_outcome, start_parse_log
from keyswitch_api.transformers import ResponseTransformer, build_transformers
from keyswitch_api.validator import validate

logger = structlog.get_logger()


class PipelineState(str, Enum):
    VALIDATING_INPUT = "validating_input"
    TRANSFORMING = "transforming"
    VALIDATING_OUTPUT = "validating_output"
    RETRYING = "retrying"
    FALLBACK = "fallback"
    DONE = "done"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one transform attempt: data or a classified error."""

    data: dict[str, Any] | None = None
    error: ErrorClassification | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class ResponsePipeline:
    """Structures markdown answers with bounded retries and a fallback."""

    def __init__(
        self,
        resolver: EntityResolver | None = None,
        transformers: dict[ResponseType, ResponseTransformer] | None = None,
        max_retries: int | None = None,
        min_length: int | None = None,
        max_length: int | None = None,
        version: str | None = None,
    ):
        """Initialize the pipeline.

        Args:
            resolver: Entity resolver shared by the default transformers.
            transformers: Transformer per response type. Defaults to the built-in set.
            max_retries: Retries after the first attempt. Defaults to config value.
            min_length: Minimum stripped markdown length.
            max_length: Maximum markdown length.
            version: Structure version stamped on every output.
        """
        settings = get_settings()
        if transformers is None:
            transformers = build_transformers(resolver or get_entity_resolver())
        self._transformers = transformers
        self._max_retries = max_retries if max_retries is not None else settings.parser_max_retries
        self._min_length = min_length if min_length is not None else settings.markdown_min_length
        self._max_length = max_length if max_length is not None else settings.markdown_max_length
        self._version = version or settings.response_version

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    def validate_input(self, markdown: str | None, response_type: ResponseType | str) -> ErrorClassification | None:
        """Reject unusable input before any transform attempt."""
        if not markdown or not markdown.strip():
            return classify(ErrorKind.INVALID_INPUT, "Markdown content is empty or null")
        if len(markdown.strip()) < self._min_length:
            return classify(
                ErrorKind.INVALID_INPUT,
                f"Markdown content is too short (minimum {self._min_length} characters)",
                length=len(markdown.strip()),
            )
        if len(markdown) > self._max_length:
            return classify(
                ErrorKind.INVALID_INPUT,
                f"Markdown content exceeds maximum length ({self._max_length // 1000}KB)",
                length=len(markdown),
            )
        if ResponseType.from_value(response_type) is None:
            return classify(
                ErrorKind.UNKNOWN_RESPONSE_TYPE,
                f"Unknown response type: {response_type}",
            )
        return None

    def attempt(self, parsed: ParsedMarkdown, response_type: ResponseType) -> AttemptResult:
        """Run one transform and validate its output."""
        transformer = self._transformers.get(response_type)
        if transformer is None:
            return AttemptResult(
                error=classify(
                    ErrorKind.UNKNOWN_RESPONSE_TYPE,
                    f"No transformer registered for {response_type.value}",
                )
            )

        name = getattr(transformer, "name", type(transformer).__name__)
        try:
            data = transformer.transform(parsed)
        except Exception as e:
            return AttemptResult(error=classify_exception(e, name))

        logger.debug("pipeline_state", state=PipelineState.VALIDATING_OUTPUT.value, transformer=name)
        result = validate(data, response_type)
        if not result.is_valid:
            return AttemptResult(
                error=classify(
                    ErrorKind.INVALID_OUTPUT_STRUCTURE,
                    f"Missing required fields: {', '.join(result.missing_fields)}",
                    missing_fields=list(result.missing_fields),
                    transformer=name,
                )
            )
        return AttemptResult(data=data)

    def parse(
        self,
        markdown: str | None,
        response_type: ResponseType | str,
        metadata: dict[str, Any] | None = None,
    ) -> StructuredContent:
        """Structure a markdown answer, falling back instead of failing.

        Args:
            markdown: The LLM's markdown answer.
            response_type: Requested output shape.
            metadata: Caller metadata copied onto the output.

        Returns:
            StructuredContent; degraded output carries processingMode "fallback".
        """
        known = ResponseType.from_value(response_type)
        outcome_log = start_parse_log(known.value if known else "unknown", len(markdown or ""))

        logger.debug("pipeline_state", state=PipelineState.VALIDATING_INPUT.value)
        error = self.validate_input(markdown, response_type)
        if error is not None:
            return self._fallback(markdown, response_type, error, 0, metadata, outcome_log)

        resolved = known
        parsed = parse_markdown(markdown)

        attempts = 0
        while True:
            attempts += 1
            logger.debug("pipeline_state", state=PipelineState.TRANSFORMING.value, attempt=attempts)
            result = self.attempt(parsed, resolved)
            if result.ok:
                break

            error = result.error
            logger.warning(
                "transform_attempt_failed",
                response_type=resolved.value,
                attempt=attempts,
                error_kind=error.kind.value,
                retryable=error.retryable,
                error=error.message,
            )
            if not error.retryable or attempts >= self.max_attempts:
                return self._fallback(markdown, resolved, error, attempts, metadata, outcome_log)
            logger.debug("pipeline_state", state=PipelineState.RETRYING.value, attempt=attempts)

        logger.debug("pipeline_state", state=PipelineState.DONE.value, attempts=attempts)
        log_parse_outcome(outcome_log, "success", attempts)
        return StructuredContent(
            response_type=resolved,
            data=result.data,
            version=self._version,
            metadata=dict(metadata) if metadata else None,
        )

    def _fallback(
        self,
        markdown: str | None,
        response_type: ResponseType | str,
        error: ErrorClassification,
        attempts: int,
        metadata: dict[str, Any] | None,
        outcome_log: ParseOutcomeLog,
    ) -> StructuredContent:
        logger.debug("pipeline_state", state=PipelineState.FALLBACK.value, error_kind=error.kind.value)
        data = fallback.generate(markdown, response_type, error, attempts)
        quality = data["metadata"]
        log_parse_outcome(outcome_log, "fallback", attempts, error.kind.value)
        return StructuredContent(
            response_type=fallback.fallback_response_type(response_type),
            data=data,
            version=self._version,
            metadata={**(metadata or {}), **quality},
        )


# Global pipeline instance
_response_pipeline: ResponsePipeline | None = None


def get_response_pipeline() -> ResponsePipeline:
    """Get the global response pipeline instance."""
    global _response_pipeline
    if _response_pipeline is None:
        _response_pipeline = ResponsePipeline()
    return _response_pipeline


def reset_response_pipeline() -> None:
    """Reset the global response pipeline (useful for testing)."""
    global _response_pipeline
    _response_pipeline = None
