"""Observability: in-process sync metrics."""

from wms_sync.observability.metrics import MetricsRegistry, SyncMetrics, get_metrics_registry

__all__ = ["MetricsRegistry", "SyncMetrics", "get_metrics_registry"]
