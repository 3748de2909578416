"""FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from backend.studio.api.routes.content import router as content_router
from backend.studio.api.routes.documents import router as documents_router
from backend.studio.api.routes.health import router as health_router
from backend.studio.api.routes.metrics import router as metrics_router
from backend.studio.api.routes.sessions import router as sessions_router
from backend.studio.api.routes.users import router as users_router
from backend.studio.errors import (
    BackendUnavailableError,
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ProviderFailureError,
    ProviderRefusedError,
    StudioError,
    TruncatedResponseError,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Voice Content Studio API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(documents_router)
app.include_router(sessions_router)
app.include_router(content_router)
app.include_router(users_router)

_STATUS_BY_ERROR: list[tuple[type[StudioError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidOperationError, status.HTTP_400_BAD_REQUEST),
    (BackendUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ProviderFailureError, status.HTTP_502_BAD_GATEWAY),
    (ProviderRefusedError, status.HTTP_502_BAD_GATEWAY),
    (TruncatedResponseError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(error: StudioError) -> int:
    """HTTP status for a domain error (500 for unmapped subclasses)."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(StudioError)
async def studio_error_handler(request: Request, exc: StudioError) -> JSONResponse:
    """Translate domain errors into structured JSON responses."""
    code = status_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Voice Content Studio API", "version": "0.1.0"}
