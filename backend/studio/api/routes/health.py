"""Health and storage-health endpoints.

- /health: liveness, always 200
- /storage-health: selected backend, per-adapter reachability and
  per-partition counts; 503 when no backend can serve the collections
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.studio.api.deps import get_storage
from backend.studio.errors import BackendUnavailableError, InvalidOperationError
from backend.studio.models import utcnow
from backend.studio.storage.hybrid import HybridStorageService, PartitionSummary

router = APIRouter()


class StorageActionRequest(BaseModel):
    """Request body for POST /storage-health."""

    action: str


def _databases(summaries: dict[Any, PartitionSummary]) -> dict[str, Any]:
    return {partition.value: summary.model_dump() for partition, summary in summaries.items()}


def _unavailable(error: BackendUnavailableError, message: str) -> Response:
    return JSONResponse(
        status_code=503,
        content={
            "status": "unhealthy",
            "error": message,
            "details": str(error),
            "timestamp": utcnow().isoformat(),
        },
    )


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/storage-health", response_model=None)
async def storage_health(
    storage: Annotated[HybridStorageService, Depends(get_storage)],
) -> dict[str, Any] | Response:
    """Storage health check.

    Reading the partitions creates any that are missing, so a healthy
    response also guarantees both collections exist.
    """
    try:
        summaries = await storage.storage_summary()
    except BackendUnavailableError as e:
        return _unavailable(e, "Storage health check failed")

    report = await storage.health_check()
    return {
        "status": "healthy",
        "mode": storage.current_storage_mode(),
        "storage": report.model_dump(mode="json"),
        "databases": _databases(summaries),
        "timestamp": utcnow().isoformat(),
    }


@router.post("/storage-health", response_model=None)
async def storage_action(
    request: StorageActionRequest,
    storage: Annotated[HybridStorageService, Depends(get_storage)],
) -> dict[str, Any] | Response:
    """Run a storage maintenance action (currently only "initialize")."""
    if request.action != "initialize":
        raise InvalidOperationError('Invalid action. Use "initialize"')

    try:
        summaries = await storage.initialize_storage()
    except BackendUnavailableError as e:
        return _unavailable(e, "Storage initialization failed")

    return {
        "status": "initialized",
        "message": "Both draft and completed databases initialized successfully",
        "databases": _databases(summaries),
        "timestamp": utcnow().isoformat(),
    }
