"""Per-index inverted indices and the immutable snapshot that groups them.

``build_snapshot`` consumes one corpus version and returns a
``RelatednessSnapshot``. Snapshots are never patched: a rebuild produces a
new snapshot that replaces the old one wholesale, so concurrent readers can
share one without locking.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from types import MappingProxyType

from related_content.domain.model import Document, KeywordValue
from related_content.domain.related import IndexConfig
from related_content.related.registry import IndexRegistry


logger = logging.getLogger(__name__)

_EMPTY_POSTING: tuple[Hashable, ...] = ()


@dataclass(frozen=True, eq=False, slots=True)
class InvertedIndex:
    """Keyword -> posting list mapping for one named index.

    Posting lists hold document identities in corpus order, each identity at
    most once. ``frequencies`` caches the document frequency of each keyword.
    """

    config: IndexConfig
    postings: Mapping[KeywordValue, tuple[Hashable, ...]]
    frequencies: Mapping[KeywordValue, int]

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def weight(self) -> float:
        return self.config.weight

    def posting_list(self, keyword: KeywordValue) -> tuple[Hashable, ...]:
        return self.postings.get(keyword, _EMPTY_POSTING)

    def document_frequency(self, keyword: KeywordValue) -> int:
        return self.frequencies.get(keyword, 0)

    def is_scorable(self, keyword: KeywordValue) -> bool:
        """Return True when ``keyword`` is present and inside the cardinality thresholds."""
        frequency = self.document_frequency(keyword)
        return frequency > 0 and self.config.accepts_frequency(frequency)

    def __len__(self) -> int:
        return len(self.postings)


@dataclass(frozen=True, eq=False, slots=True)
class RelatednessSnapshot:
    """All inverted indices built from one corpus version."""

    indices: Mapping[str, InvertedIndex]
    documents: Mapping[Hashable, Document]
    positions: Mapping[Hashable, int]
    generation: int = 0
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def index_names(self) -> tuple[str, ...]:
        return tuple(self.indices)

    def index(self, name: str) -> InvertedIndex | None:
        return self.indices.get(name)

    def document(self, identity: Hashable) -> Document | None:
        return self.documents.get(identity)

    def position(self, identity: Hashable) -> int:
        return self.positions[identity]

    def __len__(self) -> int:
        return len(self.documents)

    def stats(self) -> dict[str, object]:
        return {
            "generation": self.generation,
            "built_at": self.built_at.isoformat(),
            "documents": len(self.documents),
            "indices": {name: len(index) for name, index in self.indices.items()},
        }


def _unique_documents(documents: Iterable[Document]) -> list[tuple[Hashable, Document]]:
    seen: set[Hashable] = set()
    ordered: list[tuple[Hashable, Document]] = []
    for document in documents:
        identity = document.identity()
        if identity in seen:
            logger.warning("Skipping duplicate document %r while building related indices", identity)
            continue
        seen.add(identity)
        ordered.append((identity, document))
    return ordered


def build_index(config: IndexConfig, documents: Sequence[tuple[Hashable, Document]]) -> InvertedIndex:
    """Build the inverted index for ``config`` in one pass over ``documents``."""
    # dict keys keep insertion order, giving ordered set semantics
    postings: defaultdict[KeywordValue, dict[Hashable, None]] = defaultdict(dict)
    for identity, document in documents:
        for keyword in document.keyword_values(config.name):
            postings[keyword][identity] = None

    frozen = {keyword: tuple(identities) for keyword, identities in postings.items()}
    frequencies = {keyword: len(identities) for keyword, identities in frozen.items()}
    return InvertedIndex(
        config=config,
        postings=MappingProxyType(frozen),
        frequencies=MappingProxyType(frequencies),
    )


def build_snapshot(
    documents: Iterable[Document],
    registry: IndexRegistry,
    *,
    max_workers: int = 1,
    generation: int = 0,
) -> RelatednessSnapshot:
    """Build a snapshot of every registered index from ``documents``.

    Indices are independent, so with ``max_workers > 1`` they are built on a
    thread pool and merged before the snapshot is returned.
    """
    ordered = _unique_documents(documents)
    configs = registry.configs()

    if max_workers > 1 and len(configs) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(configs))) as executor:
            built = list(executor.map(lambda config: build_index(config, ordered), configs))
    else:
        built = [build_index(config, ordered) for config in configs]

    snapshot = RelatednessSnapshot(
        indices=MappingProxyType({index.name: index for index in built}),
        documents=MappingProxyType(dict(ordered)),
        positions=MappingProxyType({identity: position for position, (identity, _) in enumerate(ordered)}),
        generation=generation,
    )
    logger.debug(
        "Built related snapshot generation=%s documents=%s indices=%s",
        generation,
        len(ordered),
        ",".join(snapshot.index_names),
    )
    return snapshot
