"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - storage_operation_latency_ms{operation, backend, outcome}
    - storage_fallbacks_total{operation}
    - storage_read_retries_total{operation}
    - llm_requests_total{purpose, outcome}
    - llm_continuations_total
    """
    metrics_output = generate_latest()
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
