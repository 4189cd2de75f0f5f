"""Shared test fixtures and configuration."""

import os

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from related_content.observability import tracing as tracing_module


@pytest.fixture(autouse=True)
def _clean_related_env(monkeypatch):
    """Keep the developer's RELATED_* variables out of Settings()."""
    for key in list(os.environ):
        if key.upper().startswith("RELATED_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def span_exporter(monkeypatch) -> InMemorySpanExporter:
    """Route spans created by ``create_span`` into memory."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("tests"))
    return exporter
