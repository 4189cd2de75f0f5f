"""Domain layer: value objects and the document capability contract."""

from related_content.domain.model import ContentDocument, Document, KeyValues, KeywordValue
from related_content.domain.related import IndexConfig, ScoredResult


__all__ = [
    "ContentDocument",
    "Document",
    "IndexConfig",
    "KeyValues",
    "KeywordValue",
    "ScoredResult",
]
