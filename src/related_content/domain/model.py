"""Domain models for documents and their classification keywords.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- The engine depends on the ``Document`` protocol, never on a concrete class
- No infrastructure dependencies
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, order=True, slots=True)
class KeywordValue:
    """One tag or keyword within a named index.

    Comparison is exact-match on ``value``. Callers normalize case and
    whitespace before constructing keywords.
    """

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: KeywordValue | str) -> KeywordValue:
        """Accept a keyword or its raw string; anything else is a TypeError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value)
        raise TypeError(f"Keyword values must be KeywordValue or str, got {type(value).__name__}")

    @classmethod
    def many(cls, values: Iterable[str]) -> frozenset[KeywordValue]:
        """Collapse raw strings into a keyword set."""
        return frozenset(cls(value) for value in values)


@dataclass(frozen=True, slots=True)
class KeyValues:
    """Explicit relatedness criteria: an index name plus keyword values."""

    name: str
    values: tuple[KeywordValue, ...] = ()

    @classmethod
    def from_strings(cls, name: str, *values: str) -> KeyValues:
        return cls(name=name, values=tuple(KeywordValue(value) for value in values))

    def __len__(self) -> int:
        return len(self.values)


@runtime_checkable
class Document(Protocol):
    """Capability contract every indexed document fulfils."""

    def identity(self) -> Hashable:  # pragma: no cover - Protocol only
        """Return the unique, hashable identity of the document."""

    def publication_time(self) -> datetime | None:  # pragma: no cover - Protocol only
        """Return the publication timestamp used for tie-breaking."""

    def keyword_values(self, index_name: str) -> frozenset[KeywordValue]:  # pragma: no cover - Protocol only
        """Return the keyword set carried for ``index_name`` (empty when absent)."""


@dataclass(frozen=True, slots=True)
class ContentDocument:
    """Concrete document backed by in-memory keyword sets."""

    id: str
    title: str = ""
    date: datetime | None = None
    keywords: Mapping[str, frozenset[KeywordValue]] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        id: str,
        *,
        title: str = "",
        date: datetime | None = None,
        **indices: Iterable[str],
    ) -> ContentDocument:
        """Build a document from plain strings, one keyword argument per index."""
        keywords = {name: KeywordValue.many(values) for name, values in indices.items()}
        return cls(id=id, title=title, date=date, keywords=keywords)

    def identity(self) -> str:
        return self.id

    def publication_time(self) -> datetime | None:
        return self.date

    def keyword_values(self, index_name: str) -> frozenset[KeywordValue]:
        return self.keywords.get(index_name, frozenset())
