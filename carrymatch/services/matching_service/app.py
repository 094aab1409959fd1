# carrymatch/services/matching_service/app.py
"""
FastAPI application for the Matching Service.

Endpoints (prefix /api/v1/matches):
- GET  (collection root)          - caller's matches
- GET  /status/{status}           - caller's matches in a status
- GET  /{id}                      - one match
- GET  /demand/{id}               - matches of a demand
- GET  /journey/{id}              - matches of a journey
- POST /demand/{id}/find          - discover matches for a demand
- POST /journey/{id}/find         - discover matches for a journey
- PUT  /{id}/confirm/demander     - demander accepts or rejects
- PUT  /{id}/confirm/traveler     - traveler accepts or rejects
- PUT  /{id}/complete             - CONFIRMED -> COMPLETED
- PUT  /{id}/cancel               - CONFIRMED -> CANCELLED
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from carrymatch import __version__
from carrymatch.common.logger import log_error, log_warning, setup_logging
from carrymatch.config import settings
from carrymatch.core.matching.exceptions import (
    ConcurrentUpdateError,
    InvalidStateError,
    MatchingError,
    NotFoundError,
    SourceUnavailableError,
    UnauthorizedError,
)
from carrymatch.infra.database import close_db, get_db, init_db
from carrymatch.infra.event_bus import close_event_bus, get_event_bus, init_event_bus
from carrymatch.services.matching_service.dependencies import cleanup_dependencies, init_dependencies
from carrymatch.services.matching_service.routes import router
from carrymatch.shared.models.common import ErrorResponse, HealthStatus

# Checked in order, so subclasses come before their bases
ERROR_STATUS: list[tuple[type[MatchingError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (SourceUnavailableError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(exc: MatchingError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db()
    await init_event_bus()
    await init_dependencies(
        demand_service_url=settings.deployment.DEMAND_SERVICE_URL,
        journey_service_url=settings.deployment.JOURNEY_SERVICE_URL,
    )
    yield
    await cleanup_dependencies()
    await close_event_bus()
    await close_db()


app = FastAPI(
    title="Matching Service",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(MatchingError)
async def matching_error_handler(request: Request, exc: MatchingError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        await log_error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        await log_warning(f"{request.method} {request.url.path} -> {code}: {exc.message}")
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))


@app.get("/health", response_model=HealthStatus)
async def health_check():
    postgres_ok = await get_db().health_check()
    rabbitmq_ok = await get_event_bus().health_check()
    return HealthStatus(
        service="matching_service",
        status="healthy" if postgres_ok and rabbitmq_ok else "degraded",
        version=__version__,
        dependencies={
            "postgres": "healthy" if postgres_ok else "unhealthy",
            "rabbitmq": "healthy" if rabbitmq_ok else "unhealthy",
        },
    )
