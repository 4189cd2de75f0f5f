"""Registry of named relatedness indices."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from related_content.domain.related import IndexConfig
from related_content.related.errors import ConfigError


if TYPE_CHECKING:
    from related_content.config import Settings


logger = logging.getLogger(__name__)


class IndexRegistry:
    """Maps index names to their configuration.

    Registration happens once before the first build. After that the registry
    is only read, by the snapshot builder and by query validation.
    """

    def __init__(self, configs: Iterable[IndexConfig] = ()) -> None:
        self._configs: dict[str, IndexConfig] = {}
        for config in configs:
            self.register(config)

    @classmethod
    def from_definitions(cls, definitions: Iterable[IndexConfig | Mapping[str, Any]]) -> IndexRegistry:
        """Build a registry from raw definitions (e.g. parsed JSON/TOML tables)."""
        registry = cls()
        for definition in definitions:
            registry.register(definition if isinstance(definition, IndexConfig) else _validate(definition))
        return registry

    @classmethod
    def from_settings(cls, settings: Settings) -> IndexRegistry:
        return cls.from_definitions(settings.indices)

    def register(self, config: IndexConfig) -> None:
        """Register ``config``; duplicate names and non-positive weights are rejected."""
        if not config.name:
            raise ConfigError("Related index name must not be empty")
        if config.name in self._configs:
            raise ConfigError(f"Related index '{config.name}' is already registered")
        if config.weight <= 0:
            raise ConfigError(f"Related index '{config.name}' must have a positive weight, got {config.weight}")
        self._configs[config.name] = config
        logger.debug(
            "Registered related index %s (weight=%s, low=%s, high=%s)",
            config.name,
            config.weight,
            config.cardinality_threshold_low,
            config.cardinality_threshold_high,
        )

    def define(self, name: str, **options: Any) -> IndexConfig:
        """Validate and register an index from keyword options, e.g. ``define("tags", weight=2)``.

        Invalid options raise ``ConfigError``, unlike constructing ``IndexConfig``
        directly, which raises pydantic's ``ValidationError``.
        """
        config = _validate({"name": name, **options})
        self.register(config)
        return config

    def resolve(self, name: str) -> IndexConfig | None:
        return self._configs.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._configs)

    def configs(self) -> tuple[IndexConfig, ...]:
        return tuple(self._configs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[IndexConfig]:
        return iter(self.configs())

    def __len__(self) -> int:
        return len(self._configs)


def _validate(definition: Mapping[str, Any]) -> IndexConfig:
    try:
        return IndexConfig.model_validate(definition)
    except ValidationError as exc:
        raise ConfigError(f"Invalid related index definition {dict(definition)!r}: {exc}") from exc
