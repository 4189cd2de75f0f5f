"""OpenTelemetry tracing for snapshot builds and relatedness queries."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter as GrpcOTLPSpanExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HttpOTLPSpanExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from related_content.config import ObservabilityCollectorConfig
from related_content.observability.context import trace_context, update_span_id
from related_content.observability.otlp import SERVICE_NAME, build_exporter, build_resource, signal_endpoint


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Install a global SDK tracer provider and bind the module tracer to it."""
    provider = TracerProvider(resource=build_resource(resource_attributes, service_name))
    trace.set_tracer_provider(provider)
    _tracer_holder["tracer"] = provider.get_tracer(__name__)
    return provider


def configure_trace_exporter(
    config: ObservabilityCollectorConfig | None,
    provider: TracerProvider | None = None,
) -> None:
    """Batch-export spans to the OTLP collector; a no-op unless export is enabled."""
    if config is None or not config.enabled:
        return

    active_provider = provider or trace.get_tracer_provider()
    if not isinstance(active_provider, TracerProvider):
        active_provider = init_tracing(resource_attributes=config.resource_attributes)

    exporter = build_exporter(
        config,
        "traces",
        grpc_exporter=GrpcOTLPSpanExporter,
        http_exporter=HttpOTLPSpanExporter,
    )
    active_provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info(
        "Exporting related-content spans over OTLP/%s to %s",
        config.otlp_protocol,
        signal_endpoint(config, "traces"),
    )


def get_tracer() -> Tracer:
    tracer = _tracer_holder["tracer"]
    if tracer is None:
        tracer = _tracer_holder["tracer"] = trace.get_tracer(__name__)
    return tracer


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Open a span named ``name`` and point the log context at it.

    ``related.site`` is copied from the log context unless given explicitly.
    Exceptions are recorded on the span and re-raised unchanged.
    """
    span_attributes = dict(attributes or {})
    ctx = trace_context.get() or {}
    if "site" in ctx:
        span_attributes.setdefault("related.site", ctx["site"])

    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span_context = span.get_span_context()
        if span_context.is_valid:
            update_span_id(format(span_context.span_id, "016x"))
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))
            raise
