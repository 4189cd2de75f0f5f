"""Log correlation context, carried per thread and per task by a ContextVar."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import secrets


trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def get_trace_context() -> dict:
    """Return the current context, starting a fresh trace on first use."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), "trace_id": secrets.token_hex(16), "span_id": secrets.token_hex(8)}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    """Replace the context; ``extra`` keys such as ``site`` appear on every log line."""
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    trace_context.set({**(trace_context.get() or {}), "span_id": span_id})


@contextmanager
def bind_site(site: str) -> Iterator[None]:
    """Tag logs and spans emitted inside the block with ``site``."""
    token = trace_context.set({**get_trace_context(), "site": site})
    try:
        yield
    finally:
        trace_context.reset(token)
