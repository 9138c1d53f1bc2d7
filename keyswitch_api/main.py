"""FastAPI application entrypoint for the Keyswitch structuring API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from keyswitch_api import __version__
from keyswitch_api.catalog_cache import get_catalog_cache
from keyswitch_api.config import get_settings
from keyswitch_api.models import HealthResponse, StructuredContent, StructureRequest
from keyswitch_api.observability import generate_trace_id, set_trace_id
from keyswitch_api.pipeline import get_response_pipeline

settings = get_settings()

logging.basicConfig(level=settings.log_level, format="%(message)s")

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Keyswitch API", version=__version__)

    # Warm the catalog snapshot so the first request does not pay for it
    try:
        snapshot = get_catalog_cache().get()
        logger.info("Catalog cache warmed", source=snapshot.source, products=len(snapshot.names))
    except Exception as e:
        logger.error("Failed to warm catalog cache", error=str(e))

    yield

    logger.info("Shutting down Keyswitch API")


# Create FastAPI app
app = FastAPI(
    title="Keyswitch API",
    description="Turns LLM markdown answers about keyboard switches into structured responses",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Trace ID middleware for request correlation
@app.middleware("http")
async def trace_id_middleware(request: Request, call_next):
    """Add trace ID to every request for log correlation."""
    trace_id = request.headers.get("X-Trace-ID", generate_trace_id())
    set_trace_id(trace_id)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)

    response = await call_next(request)
    response.headers["X-Trace-ID"] = trace_id
    return response


# Add Prometheus metrics
Instrumentator().instrument(app).expose(app)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/health", response_model=HealthResponse)
@app.get("/api/v1/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Report service status and where the catalog snapshot came from."""
    snapshot = get_catalog_cache().get()

    if snapshot.source == "degraded" or not snapshot.names:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        catalog_source=snapshot.source,
        catalog_products=len(snapshot.names),
        version=__version__,
    )


# =============================================================================
# Structuring Endpoints
# =============================================================================


@app.post("/api/v1/responses/structure", response_model=StructuredContent)
def structure_response(structure_request: StructureRequest) -> StructuredContent:
    """
    Structure a markdown answer into the requested response shape.

    Always answers 200: markdown that cannot be structured produces a
    fallback response whose metadata carries processingMode "fallback",
    confidence 0 and the warnings explaining why.
    """
    pipeline = get_response_pipeline()
    content = pipeline.parse(
        structure_request.markdown,
        structure_request.response_type,
        metadata=structure_request.metadata,
    )
    logger.info(
        "Structured response",
        response_type=content.response_type.value,
        fallback=content.is_fallback,
    )
    return content


# =============================================================================
# Entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "keyswitch_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
