"""Prometheus metrics for snapshot builds and relatedness queries, mirrored to OpenTelemetry.

Each metric is declared once through ``_bridged``, which registers the
Prometheus collector and lazily creates the matching OTel instrument on the
first update. Gauges have no synchronous OTel equivalent, so they are
mirrored as up/down counters fed with the delta from the last value.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import threading
import time
from typing import Any, Literal

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

from related_content.observability.otlp import SERVICE_NAME, build_resource


MetricKind = Literal["counter", "histogram", "gauge"]

_PROMETHEUS_TYPES: dict[MetricKind, type] = {"counter": Counter, "histogram": Histogram, "gauge": Gauge}

_meter_holder: dict[str, Any] = {"meter": None, "provider": None}


def init_metrics(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
) -> MeterProvider:
    """Install the global meter provider once; later calls return the same provider."""
    provider = _meter_holder["provider"]
    if provider is None:
        provider = MeterProvider(resource=build_resource(resource_attributes, service_name))
        otel_metrics.set_meter_provider(provider)
        _meter_holder["provider"] = provider
        _meter_holder["meter"] = otel_metrics.get_meter(__name__)
    return provider


def _meter():
    if _meter_holder["meter"] is None:
        init_metrics()
    return _meter_holder["meter"]


class _BoundMetric:
    __slots__ = ("_bridge", "_labels")

    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.prometheus_metric.labels(**self._labels).inc(amount)
        self._bridge.instrument().add(amount, self._labels)

    def observe(self, value: float) -> None:
        self._bridge.prometheus_metric.labels(**self._labels).observe(value)
        self._bridge.instrument().record(value, self._labels)

    def set(self, value: float) -> None:
        self._bridge.prometheus_metric.labels(**self._labels).set(value)
        delta = self._bridge.swap_last_value(self._labels, value)
        if delta:
            self._bridge.instrument().add(delta, self._labels)


class MetricBridge:
    """One Prometheus collector plus its OpenTelemetry counterpart."""

    def __init__(self, kind: MetricKind, name: str, description: str, prometheus_metric: Any) -> None:
        self.kind = kind
        self.name = name
        self.description = description
        self.prometheus_metric = prometheus_metric
        self._instrument = None
        self._last_values: dict[tuple[tuple[str, str], ...], float] = {}
        self._lock = threading.Lock()

    def labels(self, **labels: str) -> _BoundMetric:
        return _BoundMetric(self, labels)

    def instrument(self):
        if self._instrument is None:
            meter = _meter()
            if self.kind == "counter":
                self._instrument = meter.create_counter(self.name, description=self.description)
            elif self.kind == "histogram":
                self._instrument = meter.create_histogram(self.name, unit="s", description=self.description)
            else:
                self._instrument = meter.create_up_down_counter(self.name, description=self.description)
        return self._instrument

    def swap_last_value(self, labels: dict[str, str], value: float) -> float:
        """Store ``value`` for ``labels`` and return the change from the previous value."""
        key = tuple(sorted(labels.items()))
        with self._lock:
            previous = self._last_values.get(key, 0.0)
            self._last_values[key] = value
        return value - previous


def _bridged(kind: MetricKind, name: str, description: str, labelnames: list[str], **options: Any) -> MetricBridge:
    prometheus_metric = _PROMETHEUS_TYPES[kind](name, description, labelnames, **options)
    return MetricBridge(kind, name, description, prometheus_metric)


BUILD_LATENCY = _bridged(
    "histogram",
    "related_snapshot_build_seconds",
    "Time spent building a relatedness snapshot",
    ["site"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

SNAPSHOT_DOC_COUNT = _bridged(
    "gauge",
    "related_snapshot_documents",
    "Documents in the published relatedness snapshot",
    ["site"],
)

QUERY_LATENCY = _bridged(
    "histogram",
    "related_query_latency_seconds",
    "Relatedness query latency",
    ["operation"],
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)

QUERY_COUNT = _bridged(
    "counter",
    "related_queries_total",
    "Relatedness queries by operation and outcome",
    ["operation", "status"],
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Iterator[None]:
    """Observe the wall time of the block on ``histogram``, also when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Prometheus text exposition of every registered metric."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
