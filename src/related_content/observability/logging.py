"""Structured logging for snapshot builds and relatedness queries.

Every JSON line carries the trace/span ids of the active context so log
lines can be joined with the spans emitted by ``create_span``. Keyword sets
passed through ``extra=`` are rendered as sorted string lists and capped.
"""

from __future__ import annotations

from collections.abc import Set
from datetime import datetime, timezone
import logging
import sys
from typing import Any

from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter as GrpcOTLPLogExporter
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter as HttpOTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
import orjson

from related_content.config import ObservabilityCollectorConfig
from related_content.domain.model import KeywordValue
from related_content.observability.context import get_trace_context
from related_content.observability.otlp import SERVICE_NAME, build_exporter, build_resource


PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)
_CONTEXT_IDS = ("trace_id", "span_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, correlated with the active trace."""

    MAX_MESSAGE_LEN = 2000
    MAX_ITEMS = 50
    REDACT_KEYS = frozenset({"authorization", "headers", "token"})

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_trace_context()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "message": self._shorten(record.getMessage()),
        }
        for key in _CONTEXT_IDS:
            entry[key] = ctx.get(key, "")
        # site and other context extras set via set_trace_context
        entry.update((key, value) for key, value in ctx.items() if key not in _CONTEXT_IDS)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            entry[key] = "[REDACTED]" if key.lower() in self.REDACT_KEYS else value

        return orjson.dumps(
            entry,
            default=self._json_default,
            option=orjson.OPT_NON_STR_KEYS | orjson.OPT_PASSTHROUGH_DATACLASS,
        ).decode("utf-8")

    def _shorten(self, msg: str) -> str:
        if len(msg) > self.MAX_MESSAGE_LEN:
            return msg[: self.MAX_MESSAGE_LEN] + "..."
        return msg

    def _json_default(self, value: Any) -> Any:
        if isinstance(value, KeywordValue):
            return value.value
        if isinstance(value, Set):
            items = sorted(str(item) for item in value)
            if len(items) > self.MAX_ITEMS:
                return [*items[: self.MAX_ITEMS], f"... {len(items) - self.MAX_ITEMS} more"]
            return items
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8", errors="replace")
        return str(value)


def _stream_handler(json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    return handler


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Send all records to stderr, replacing any handlers already on the root logger.

    Args:
        level: Root log level name, case-insensitive
        json_output: Emit JSON lines instead of the plain text format
        logger_levels: Per-logger overrides (logger name -> level name)
    """
    root = logging.getLogger()
    root.setLevel(_level(level))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(_stream_handler(json_output))

    for logger_name, logger_level in (logger_levels or {}).items():
        logging.getLogger(logger_name).setLevel(_level(logger_level))


_log_export: dict[str, object] = {"provider": None, "handler": None}


def init_log_exporter(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
) -> LoggerProvider:
    provider = LoggerProvider(resource=build_resource(resource_attributes, service_name))
    set_logger_provider(provider)
    _log_export["provider"] = provider
    return provider


def configure_log_exporter(
    config: ObservabilityCollectorConfig | None,
    provider: LoggerProvider | None = None,
) -> None:
    """Mirror INFO and above to the OTLP collector; a no-op unless export is enabled."""
    if config is None or not config.enabled or _log_export["handler"] is not None:
        return

    active_provider = provider or _log_export["provider"]
    if not isinstance(active_provider, LoggerProvider):
        active_provider = init_log_exporter(resource_attributes=config.resource_attributes)

    exporter = build_exporter(config, "logs", grpc_exporter=GrpcOTLPLogExporter, http_exporter=HttpOTLPLogExporter)
    active_provider.add_log_record_processor(BatchLogRecordProcessor(exporter))

    handler = LoggingHandler(level=logging.INFO, logger_provider=active_provider)
    logging.getLogger().addHandler(handler)
    _log_export["handler"] = handler
