"""Prometheus metrics for storage and model calls."""

from prometheus_client import Counter, Histogram

# Storage metrics
storage_operation_latency_ms = Histogram(
    "storage_operation_latency_ms",
    "Storage operation latency in milliseconds",
    ["operation", "backend", "outcome"],
    buckets=[5, 10, 50, 100, 200, 500, 1000, 2000, 4000],
)

storage_fallbacks_total = Counter(
    "storage_fallbacks_total",
    "Object-store operations served by the local fallback",
    ["operation"],
)

storage_read_retries_total = Counter(
    "storage_read_retries_total",
    "Read retries caused by transient (eventually consistent) failures",
    ["operation"],
)

# Language model metrics
llm_requests_total = Counter(
    "llm_requests_total",
    "Language model requests",
    ["purpose", "outcome"],
)

llm_continuations_total = Counter(
    "llm_continuations_total",
    "Continuation rounds issued after a truncated response",
)


class PrometheusStorageMetrics:
    """Prometheus-based storage metrics implementation."""

    def record_latency(self, operation: str, backend: str, outcome: str, latency_ms: float) -> None:
        """Record storage operation latency."""
        storage_operation_latency_ms.labels(
            operation=operation, backend=backend, outcome=outcome
        ).observe(latency_ms)

    def inc_fallback(self, operation: str) -> None:
        """Increment fallback counter."""
        storage_fallbacks_total.labels(operation=operation).inc()

    def inc_read_retry(self, operation: str) -> None:
        """Increment read retry counter."""
        storage_read_retries_total.labels(operation=operation).inc()
