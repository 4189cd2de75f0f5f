"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from related_content.observability.context import bind_site, get_trace_context, set_trace_context, trace_context
from related_content.observability.logging import (
    JsonFormatter,
    configure_log_exporter,
    configure_logging,
    init_log_exporter,
)
from related_content.observability.metrics import (
    BUILD_LATENCY,
    QUERY_COUNT,
    QUERY_LATENCY,
    SNAPSHOT_DOC_COUNT,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from related_content.observability.tracing import (
    configure_trace_exporter,
    create_span,
    get_tracer,
    init_tracing,
)


__all__ = [
    "BUILD_LATENCY",
    "QUERY_COUNT",
    "QUERY_LATENCY",
    "SNAPSHOT_DOC_COUNT",
    "JsonFormatter",
    "bind_site",
    "configure_log_exporter",
    "configure_logging",
    "configure_trace_exporter",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_log_exporter",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
