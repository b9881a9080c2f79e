"""In-process metrics for sync cycles.

Counters, gauges and histograms kept in a thread-safe registry and
rendered in Prometheus text format on demand.  The sync job records one
cycle outcome, per-outcome record counts and the cycle duration.

Example:
    >>> from wms_sync.observability.metrics import SyncMetrics, MetricsRegistry
    >>> m = SyncMetrics(MetricsRegistry())
    >>> m.record_cycle("orders", "ok", 0.42, records={"upserted": 12})
    >>> m.cycles.labels(sync_type="orders", status="ok").value
    1.0
"""

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Labels:
    """Immutable, order-independent label set."""

    items: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_dict(cls, d: Mapping[str, str] | None) -> "Labels":
        if not d:
            return cls()
        return cls(tuple(sorted((k, str(v)) for k, v in d.items())))

    def to_dict(self) -> dict[str, str]:
        return dict(self.items)

    def render(self, extra: str = "") -> str:
        parts = [f'{k}="{v}"' for k, v in self.items]
        if extra:
            parts.append(extra)
        return "{" + ",".join(parts) + "}" if parts else ""


class Metric:
    """Base class: a named family of labelled series."""

    type_name = "untyped"

    def __init__(self, name: str, description: str = "", labels: list[str] | None = None):
        self.name = name
        self.description = description
        self.label_names = list(labels or [])
        self._lock = threading.Lock()
        self._series: dict[Labels, Any] = {}

    def _check_labels(self, labels: dict[str, str]) -> Labels:
        if self.label_names and sorted(labels) != sorted(self.label_names):
            raise ValueError(
                f"{self.name} expects labels {self.label_names}, got {sorted(labels)}"
            )
        return Labels.from_dict(labels)

    def collect(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {"name": self.name, "type": self.type_name, "labels": labels.to_dict(), "value": value}
                for labels, value in self._series.items()
            ]


class Counter(Metric):
    """A monotonically increasing counter."""

    type_name = "counter"

    def labels(self, **kwargs: str) -> "CounterChild":
        return CounterChild(self, self._check_labels(kwargs))

    def inc(self, value: float = 1.0) -> None:
        self.labels().inc(value)


class CounterChild:
    """Counter bound to one label set."""

    def __init__(self, counter: Counter, labels: Labels):
        self._counter = counter
        self._labels = labels

    def inc(self, value: float = 1.0) -> None:
        if value < 0:
            raise ValueError("Counter can only increase")
        with self._counter._lock:
            series = self._counter._series
            series[self._labels] = series.get(self._labels, 0.0) + value

    @property
    def value(self) -> float:
        with self._counter._lock:
            return self._counter._series.get(self._labels, 0.0)


class Gauge(Metric):
    """A value that can go up or down."""

    type_name = "gauge"

    def labels(self, **kwargs: str) -> "GaugeChild":
        return GaugeChild(self, self._check_labels(kwargs))

    def set(self, value: float) -> None:
        self.labels().set(value)


class GaugeChild:
    """Gauge bound to one label set."""

    def __init__(self, gauge: Gauge, labels: Labels):
        self._gauge = gauge
        self._labels = labels

    def set(self, value: float) -> None:
        with self._gauge._lock:
            self._gauge._series[self._labels] = float(value)

    def inc(self, value: float = 1.0) -> None:
        with self._gauge._lock:
            series = self._gauge._series
            series[self._labels] = series.get(self._labels, 0.0) + value

    def dec(self, value: float = 1.0) -> None:
        self.inc(-value)

    @property
    def value(self) -> float:
        with self._gauge._lock:
            return self._gauge._series.get(self._labels, 0.0)


class Histogram(Metric):
    """A distribution of observed values with cumulative buckets."""

    type_name = "histogram"

    DEFAULT_BUCKETS = (0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, float("inf"))

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ):
        super().__init__(name, description, labels)
        self.buckets = tuple(buckets or self.DEFAULT_BUCKETS)

    def labels(self, **kwargs: str) -> "HistogramChild":
        return HistogramChild(self, self._check_labels(kwargs))

    def observe(self, value: float) -> None:
        self.labels().observe(value)

    def _empty(self) -> dict[str, Any]:
        return {"buckets": dict.fromkeys(self.buckets, 0), "sum": 0.0, "count": 0}

    def collect(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {
                    "name": self.name,
                    "type": self.type_name,
                    "labels": labels.to_dict(),
                    "buckets": dict(data["buckets"]),
                    "sum": data["sum"],
                    "count": data["count"],
                }
                for labels, data in self._series.items()
            ]


class HistogramChild:
    """Histogram bound to one label set."""

    def __init__(self, histogram: Histogram, labels: Labels):
        self._histogram = histogram
        self._labels = labels

    def observe(self, value: float) -> None:
        hist = self._histogram
        with hist._lock:
            data = hist._series.setdefault(self._labels, hist._empty())
            data["sum"] += value
            data["count"] += 1
            for bucket in hist.buckets:
                if value <= bucket:
                    data["buckets"][bucket] += 1

    @property
    def data(self) -> dict[str, Any]:
        with self._histogram._lock:
            data = self._histogram._series.get(self._labels)
            if data is None:
                return self._histogram._empty()
            return {"buckets": dict(data["buckets"]), "sum": data["sum"], "count": data["count"]}


class MetricsRegistry:
    """Registry of all metrics for collection and export."""

    def __init__(self):
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, cls: type[Metric], name: str, *args: Any) -> Any:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = cls(name, *args)
                self._metrics[name] = metric
            elif not isinstance(metric, cls):
                raise ValueError(f"Metric {name} already registered as {metric.type_name}")
            return metric

    def counter(self, name: str, description: str = "", labels: list[str] | None = None) -> Counter:
        return self._get_or_create(Counter, name, description, labels)

    def gauge(self, name: str, description: str = "", labels: list[str] | None = None) -> Gauge:
        return self._get_or_create(Gauge, name, description, labels)

    def histogram(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ) -> Histogram:
        return self._get_or_create(Histogram, name, description, labels, buckets)

    def collect(self) -> list[dict[str, Any]]:
        with self._lock:
            metrics = list(self._metrics.values())
        results: list[dict[str, Any]] = []
        for metric in metrics:
            results.extend(metric.collect())
        return results

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        with self._lock:
            metrics = list(self._metrics.values())

        lines: list[str] = []
        for metric in metrics:
            if metric.description:
                lines.append(f"# HELP {metric.name} {metric.description}")
            lines.append(f"# TYPE {metric.name} {metric.type_name}")
            for data in metric.collect():
                labels = Labels.from_dict(data["labels"])
                if data["type"] != "histogram":
                    lines.append(f"{metric.name}{labels.render()} {data['value']}")
                    continue
                for bucket, count in data["buckets"].items():
                    le = "+Inf" if bucket == float("inf") else str(bucket)
                    bucket_labels = labels.render(f'le="{le}"')
                    lines.append(f"{metric.name}_bucket{bucket_labels} {count}")
                lines.append(f"{metric.name}_sum{labels.render()} {data['sum']}")
                lines.append(f"{metric.name}_count{labels.render()} {data['count']}")
        return "\n".join(lines)


_default_registry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the default metrics registry."""
    return _default_registry


class SyncMetrics:
    """Pre-defined metrics for sync cycles."""

    def __init__(self, registry: MetricsRegistry | None = None):
        reg = registry or _default_registry

        self.cycles = reg.counter(
            "wms_sync_cycles_total",
            "Sync cycles by outcome",
            ["sync_type", "status"],
        )
        self.records = reg.counter(
            "wms_sync_records_total",
            "Records processed by outcome",
            ["sync_type", "outcome"],
        )
        self.duration = reg.histogram(
            "wms_sync_cycle_duration_seconds",
            "Sync cycle duration in seconds",
            ["sync_type"],
        )
        self.running = reg.gauge(
            "wms_sync_cycle_running",
            "1 while a cycle of this sync type is running",
            ["sync_type"],
        )

    def record_cycle(
        self,
        sync_type: str,
        status: str,
        duration: float,
        records: Mapping[str, int] | None = None,
    ) -> None:
        """Record one finished (or skipped) cycle."""
        self.cycles.labels(sync_type=sync_type, status=status).inc()
        if status != "skipped":
            self.duration.labels(sync_type=sync_type).observe(duration)
        for outcome, count in (records or {}).items():
            if count:
                self.records.labels(sync_type=sync_type, outcome=outcome).inc(count)


__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "Labels",
    "MetricsRegistry",
    "SyncMetrics",
    "get_metrics_registry",
]
