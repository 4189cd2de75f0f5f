"""Error taxonomy for the relatedness engine."""

from __future__ import annotations


class RelatedContentError(Exception):
    """Base class for every error raised by the relatedness engine."""


class ConfigError(RelatedContentError, ValueError):
    """Raised for invalid or duplicate index registrations."""


class QueryError(RelatedContentError):
    """Raised when a relatedness query cannot be answered."""


class UnknownIndexError(QueryError):
    """Raised when a query references an index name that is not registered."""

    def __init__(self, index_name: str) -> None:
        super().__init__(f"Unknown related index: '{index_name}'")
        self.index_name = index_name


class EmptyCriteriaError(QueryError):
    """Raised when an explicit-keyword query carries no keyword values."""


class NoIndicesConfiguredError(QueryError):
    """Raised when a document-based query runs against an empty registry."""
