"""Content relatedness engine: rank documents by weighted keyword overlap."""

from related_content.domain.model import ContentDocument, Document, KeyValues, KeywordValue
from related_content.domain.related import IndexConfig, ScoredResult
from related_content.related import (
    ConfigError,
    EmptyCriteriaError,
    IndexRegistry,
    NoIndicesConfiguredError,
    QueryError,
    RelatedContentError,
    RelatednessSnapshot,
    SnapshotPublisher,
    UnknownIndexError,
    build_snapshot,
    related,
    related_indices,
    related_to,
)
from related_content.service_layer import RelatedContentService


__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "ContentDocument",
    "Document",
    "EmptyCriteriaError",
    "IndexConfig",
    "IndexRegistry",
    "KeyValues",
    "KeywordValue",
    "NoIndicesConfiguredError",
    "QueryError",
    "RelatedContentError",
    "RelatedContentService",
    "RelatednessSnapshot",
    "ScoredResult",
    "SnapshotPublisher",
    "UnknownIndexError",
    "build_snapshot",
    "related",
    "related_indices",
    "related_to",
]
