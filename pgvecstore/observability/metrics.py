"""
Prometheus metrics for vector store operations.

Defines and exposes metrics for:
- Operation counts by outcome
- Operation latency

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from pgvecstore.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for PgVectorStore.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_operation("search_vector", "success", latency=0.012)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.operations = Counter(
            "pgvecstore_operations_total",
            "Total vector store operations",
            ["operation", "status"],  # status: success, error
        )

        self.operation_latency = Histogram(
            "pgvecstore_operation_latency_seconds",
            "Time spent in a vector store operation",
            ["operation"],
            buckets=LATENCY_BUCKETS,
        )

        self.schema_degraded = Counter(
            "pgvecstore_schema_bootstrap_failures_total",
            "Schema bootstrap failures tolerated at startup",
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    def record_operation(
        self,
        operation: str,
        status: str,
        latency: float | None = None,
    ) -> None:
        """
        Record one completed operation.

        Args:
            operation: Public method name (e.g. "add_vector")
            status: "success" or "error"
            latency: Wall-clock seconds, if measured
        """
        self.operations.labels(operation=operation, status=status).inc()
        if latency is not None:
            self.operation_latency.labels(operation=operation).observe(latency)

    def record_schema_degraded(self) -> None:
        """Record a schema bootstrap failure that the store tolerated."""
        self.schema_degraded.inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
