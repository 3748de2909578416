"""Structured logging for storage operations."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredStorageLogger:
    """Structured logger for storage backend calls."""

    def log_operation(
        self,
        operation: str,
        backend: str,
        outcome: str,
        latency_ms: float,
        key: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one storage operation with structured data."""
        log_data: dict[str, Any] = {
            "operation": operation,
            "backend": backend,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if key:
            log_data["key"] = key
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Storage {operation} on {backend} - {outcome}"

        if outcome == "success":
            logger.debug(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
