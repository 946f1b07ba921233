"""Main module of the stream compositions backend."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from stream_compositions.api.v1.api import api_router
from stream_compositions.core.config import settings
from stream_compositions.core.exceptions import (
    ConflictException,
    IntegrationException,
    NotFoundException,
    ParseException,
    SerializationException,
)
from stream_compositions.core.logging import logger
from stream_compositions.core.product_post_ingestion_service import (
    ProductChainConfig,
    ProductPostIngestionService,
)
from stream_compositions.db.session import engine
from stream_compositions.events.bus import build_event_bus
from stream_compositions.platform.http_client.transaction_composition_client import (
    TransactionCompositionClient,
)
from stream_compositions.platform.metrics.prometheus_metrics import get_prometheus_metrics


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the post-ingestion chain on startup and release connections on shutdown."""
    transaction_client = TransactionCompositionClient.from_base_url(
        settings.TRANSACTION_COMPOSITION_BASE_URL,
        timeout=settings.TRANSACTION_COMPOSITION_TIMEOUT_SECONDS,
    )
    event_bus = build_event_bus(
        settings.EVENT_BUS_BACKEND,
        server_url=settings.SVIX_URL,
        signing_secret=settings.SVIX_JWT_SECRET,
        app_uid=settings.SVIX_APP_UID,
    )
    app.state.product_post_ingestion_service = ProductPostIngestionService(
        event_bus=event_bus,
        config=ProductChainConfig.from_settings(settings),
        transaction_client=transaction_client,
    )
    logger.info(f"{settings.PROJECT_NAME} started in {settings.ENVIRONMENT} environment")

    yield

    await app.state.product_post_ingestion_service.drain()
    await event_bus.drain()
    await transaction_client.aclose()
    await engine.dispose()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.include_router(api_router)


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Translate a missing record into a 404."""
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException) -> JSONResponse:
    """Translate a write colliding with another record into a 409."""
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(ParseException)
async def parse_exception_handler(request: Request, exc: ParseException) -> JSONResponse:
    """Translate unparseable cursor data into a 400."""
    return JSONResponse(status_code=400, content={"detail": exc.message, "kind": exc.kind})


@app.exception_handler(SerializationException)
async def serialization_exception_handler(
    request: Request, exc: SerializationException
) -> JSONResponse:
    """Translate unserializable cursor data into a 400."""
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(IntegrationException)
async def integration_exception_handler(
    request: Request, exc: IntegrationException
) -> JSONResponse:
    """Translate a failed downstream call into a 502."""
    logger.error(f"Downstream {exc.service} call failed: {exc.message}")
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.get("/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics of the post-ingestion chains."""
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
