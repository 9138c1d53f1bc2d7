"""Observability utilities: trace IDs, pipeline metrics, and outcome logging.

This module provides:
- Trace ID generation and propagation via context vars
- Prometheus metrics for the structuring pipeline (attempts, outcomes, latency)
- Prometheus metrics for catalog refreshes and entity resolution
- Structured logging helper for pipeline outcome correlation
"""

import secrets
import time
from contextvars import ContextVar
from dataclasses import dataclass, field

import structlog
from prometheus_client import Counter, Histogram

logger = structlog.get_logger()

# =============================================================================
# Trace ID Context
# =============================================================================

# Context variable for trace ID propagation across calls
trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def generate_trace_id() -> str:
    """Generate cryptographically secure trace ID for request tracking."""
    return secrets.token_hex(16)  # 32 hex chars, same format as uuid4().hex


def get_trace_id() -> str:
    """Get current trace ID from context, or empty string if not set."""
    return trace_id_ctx.get()


def set_trace_id(trace_id: str) -> None:
    """Set trace ID in context."""
    trace_id_ctx.set(trace_id)


# =============================================================================
# Prometheus Metrics for the Structuring Pipeline
# =============================================================================

structured_parse_total = Counter(
    "structured_parse_total",
    "Markdown structuring requests by outcome",
    ["response_type", "outcome"],  # outcome: success, fallback
)

structured_parse_attempts = Histogram(
    "structured_parse_attempts",
    "Transform attempts per structuring request",
    buckets=[0, 1, 2, 3, 4],
)

structured_parse_latency_seconds = Histogram(
    "structured_parse_latency_seconds",
    "End-to-end structuring latency in seconds",
    ["response_type"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

catalog_refresh_total = Counter(
    "catalog_refresh_total",
    "Catalog cache collection refreshes by status",
    ["collection", "status"],  # status: fresh, stale, seed
)

entity_resolution_total = Counter(
    "entity_resolution_total",
    "Entity resolutions by winning strategy",
    ["strategy"],
)


# =============================================================================
# Pipeline Outcome Logging
# =============================================================================


@dataclass
class ParseOutcomeLog:
    """Structured log data for one structuring invocation."""

    trace_id: str
    response_type: str
    markdown_chars: int
    attempts: int
    outcome: str
    error_kind: str | None = None
    started_at: float = field(default_factory=time.perf_counter)


def start_parse_log(response_type: str, markdown_chars: int) -> ParseOutcomeLog:
    """Open an outcome log for a structuring invocation."""
    return ParseOutcomeLog(
        trace_id=get_trace_id(),
        response_type=response_type,
        markdown_chars=markdown_chars,
        attempts=0,
        outcome="pending",
    )


def log_parse_outcome(
    outcome_log: ParseOutcomeLog,
    outcome: str,
    attempts: int,
    error_kind: str | None = None,
) -> None:
    """Log a structuring outcome and update Prometheus metrics."""
    outcome_log.outcome = outcome
    outcome_log.attempts = attempts
    outcome_log.error_kind = error_kind
    latency = time.perf_counter() - outcome_log.started_at

    if outcome == "fallback":
        logger.warning(
            "structured_parse",
            trace_id=outcome_log.trace_id,
            response_type=outcome_log.response_type,
            markdown_chars=outcome_log.markdown_chars,
            attempts=attempts,
            outcome=outcome,
            error_kind=error_kind,
            latency_ms=int(latency * 1000),
        )
    else:
        logger.info(
            "structured_parse",
            trace_id=outcome_log.trace_id,
            response_type=outcome_log.response_type,
            markdown_chars=outcome_log.markdown_chars,
            attempts=attempts,
            outcome=outcome,
            latency_ms=int(latency * 1000),
        )

    structured_parse_total.labels(
        response_type=outcome_log.response_type,
        outcome=outcome,
    ).inc()
    structured_parse_attempts.observe(attempts)
    structured_parse_latency_seconds.labels(
        response_type=outcome_log.response_type,
    ).observe(latency)
