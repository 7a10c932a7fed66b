"""Observability layer - logging and metrics."""

from pgvecstore.observability.logging import setup_logging
from pgvecstore.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
