"""Centralized configuration for the relatedness engine using Pydantic Settings."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from related_content.domain.related import IndexConfig


class ObservabilityCollectorConfig(BaseModel):
    """Configuration for OTLP trace and log export."""

    model_config = {"extra": "forbid"}

    enabled: Annotated[bool, Field(description="Enable OTLP export to an external collector")] = False

    otlp_protocol: Annotated[Literal["http", "grpc"], Field(description="OTLP transport protocol")] = "grpc"

    collector_endpoint: Annotated[
        str,
        Field(
            description="OTLP collector endpoint (HTTP uses /v1/traces)",
            examples=["http://localhost:4317", "http://localhost:4318/v1/traces"],
        ),
    ] = "http://localhost:4317"

    headers: Annotated[dict[str, str], Field(description="Optional headers to include with OTLP requests")] = Field(
        default_factory=dict
    )

    timeout_seconds: Annotated[int, Field(ge=1, le=60, description="OTLP exporter timeout in seconds")] = 10

    grpc_insecure: Annotated[bool, Field(description="Allow insecure gRPC (plaintext) connections")] = True

    resource_attributes: Annotated[
        dict[str, str],
        Field(description="Additional OpenTelemetry resource attributes"),
    ] = Field(default_factory=dict)


def _default_indices() -> list[IndexConfig]:
    return [IndexConfig(name="keywords", weight=1.0)]


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Complex values (``RELATED_INDICES``) are parsed as JSON, nested values use
    ``__`` as delimiter (``RELATED_OBSERVABILITY__ENABLED=true``).
    """

    model_config = SettingsConfigDict(
        env_prefix="RELATED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Index build
    build_workers: int = Field(default=1, ge=1, description="Threads used to build independent indices")
    indices: list[IndexConfig] = Field(
        default_factory=_default_indices,
        description="Related index definitions (name, weight, cardinality thresholds)",
    )

    observability: ObservabilityCollectorConfig = Field(default_factory=ObservabilityCollectorConfig)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"debug", "info", "warning", "error", "critical"}:
            raise ValueError(f"Unsupported log level: {value}")
        return normalized

    def index_names(self) -> list[str]:
        """Return configured index names in declaration order."""
        return [index.name for index in self.indices]
