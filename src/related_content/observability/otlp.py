"""OTLP exporter plumbing shared by trace and log export."""

from __future__ import annotations

from typing import Any, Literal

from opentelemetry.sdk.resources import Resource

from related_content.config import ObservabilityCollectorConfig


SERVICE_NAME = "related-content-engine"

Signal = Literal["traces", "logs"]


def build_resource(resource_attributes: dict[str, str] | None = None, service_name: str = SERVICE_NAME) -> Resource:
    return Resource.create({"service.name": service_name, **(resource_attributes or {})})


def signal_endpoint(config: ObservabilityCollectorConfig, signal: Signal) -> str:
    """Return the collector endpoint for ``signal``.

    gRPC multiplexes every signal on one endpoint. OTLP/HTTP uses one path per
    signal, so a configured ``/v1/traces`` (or bare base URL) is rewritten to
    ``/v1/<signal>``.
    """
    endpoint = config.collector_endpoint.rstrip("/")
    if config.otlp_protocol == "grpc":
        return endpoint
    for known in ("/v1/traces", "/v1/logs", "/v1/metrics"):
        if endpoint.endswith(known):
            endpoint = endpoint.removesuffix(known)
            break
    return f"{endpoint}/v1/{signal}"


def build_exporter(
    config: ObservabilityCollectorConfig,
    signal: Signal,
    *,
    grpc_exporter: type,
    http_exporter: type,
) -> Any:
    """Instantiate the gRPC or HTTP exporter class selected by ``config``."""
    kwargs: dict[str, Any] = {
        "endpoint": signal_endpoint(config, signal),
        "headers": config.headers,
        "timeout": config.timeout_seconds,
    }
    if config.otlp_protocol == "grpc":
        return grpc_exporter(insecure=config.grpc_insecure, **kwargs)
    return http_exporter(**kwargs)
