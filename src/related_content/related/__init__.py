"""Content relatedness engine: registry, inverted indices, queries and ranking."""

from related_content.related.errors import (
    ConfigError,
    EmptyCriteriaError,
    NoIndicesConfiguredError,
    QueryError,
    RelatedContentError,
    UnknownIndexError,
)
from related_content.related.inverted_index import InvertedIndex, RelatednessSnapshot, build_index, build_snapshot
from related_content.related.publisher import SnapshotPublisher
from related_content.related.query import related, related_indices, related_to, related_to_criteria
from related_content.related.ranking import rank
from related_content.related.registry import IndexRegistry


__all__ = [
    "ConfigError",
    "EmptyCriteriaError",
    "IndexRegistry",
    "InvertedIndex",
    "NoIndicesConfiguredError",
    "QueryError",
    "RelatedContentError",
    "RelatednessSnapshot",
    "SnapshotPublisher",
    "UnknownIndexError",
    "build_index",
    "build_snapshot",
    "rank",
    "related",
    "related_indices",
    "related_to",
    "related_to_criteria",
]
