"""Caller-facing relatedness service.

Wraps the pure query functions with snapshot publication, tracing, metrics
and logging. Every query reads the published snapshot exactly once, so it
observes one complete corpus version even while a rebuild runs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
from typing import TypeVar

from related_content.config import Settings
from related_content.domain.model import Document, KeyValues, KeywordValue
from related_content.domain.related import ScoredResult
from related_content.observability import (
    BUILD_LATENCY,
    QUERY_COUNT,
    QUERY_LATENCY,
    SNAPSHOT_DOC_COUNT,
    bind_site,
    create_span,
    track_latency,
)
from related_content.related import query
from related_content.related.errors import QueryError
from related_content.related.inverted_index import RelatednessSnapshot
from related_content.related.publisher import SnapshotPublisher
from related_content.related.registry import IndexRegistry


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RelatedContentService:
    """Entry point for templates and other rendering code."""

    def __init__(self, registry: IndexRegistry, publisher: SnapshotPublisher | None = None, *, site: str = "default"):
        self.registry = registry
        self.publisher = publisher or SnapshotPublisher(registry)
        self.site = site

    @classmethod
    def from_settings(cls, settings: Settings, *, site: str = "default") -> RelatedContentService:
        """Validate configured indices and create a service with an empty snapshot."""
        registry = IndexRegistry.from_settings(settings)
        return cls(registry, SnapshotPublisher(registry, max_workers=settings.build_workers), site=site)

    @property
    def snapshot(self) -> RelatednessSnapshot:
        return self.publisher.current

    def rebuild(self, documents: Iterable[Document]) -> RelatednessSnapshot:
        """Rebuild every index from ``documents`` and publish the result."""
        with bind_site(self.site), create_span("related.rebuild") as span:
            with track_latency(BUILD_LATENCY, site=self.site):
                snapshot = self.publisher.rebuild(documents)
            span.set_attribute("related.documents", len(snapshot))
            span.set_attribute("related.generation", snapshot.generation)
        SNAPSHOT_DOC_COUNT.labels(site=self.site).set(len(snapshot))
        return snapshot

    def related_to(
        self,
        index_name: str,
        keyword_values: Iterable[KeywordValue | str],
        *,
        limit: int | None = None,
    ) -> list[ScoredResult]:
        """Rank documents sharing ``keyword_values`` (keywords or raw strings) within ``index_name``."""
        values = tuple(keyword_values)
        return self._run(
            "related_to",
            lambda snapshot: query.related_to(snapshot, index_name, values),
            limit=limit,
            index=index_name,
            keywords=len(values),
        )

    def related_to_criteria(self, criteria: KeyValues, *, limit: int | None = None) -> list[ScoredResult]:
        return self.related_to(criteria.name, criteria.values, limit=limit)

    def related(self, document: Document, *, limit: int | None = None) -> list[ScoredResult]:
        """Rank documents related to ``document`` across every registered index."""
        return self._run(
            "related",
            lambda snapshot: query.related(snapshot, document),
            limit=limit,
            source=str(document.identity()),
        )

    def related_indices(
        self,
        document: Document,
        index_names: Sequence[str],
        *,
        limit: int | None = None,
    ) -> list[ScoredResult]:
        """Rank documents related to ``document`` using only ``index_names``."""
        names = tuple(index_names)
        return self._run(
            "related_indices",
            lambda snapshot: query.related_indices(snapshot, document, names),
            limit=limit,
            source=str(document.identity()),
            index=",".join(names),
        )

    def resolve(self, results: Iterable[ScoredResult]) -> list[Document]:
        """Map scored results back to the documents of the current snapshot.

        Results from an older snapshot whose documents are gone are dropped.
        """
        snapshot = self.publisher.current
        documents: list[Document] = []
        for result in results:
            document = snapshot.document(result.identity)
            if document is not None:
                documents.append(document)
        return documents

    def stats(self) -> dict[str, object]:
        return {"site": self.site, **self.publisher.current.stats()}

    def _run(
        self,
        operation: str,
        run: Callable[[RelatednessSnapshot], list[ScoredResult]],
        *,
        limit: int | None,
        **attributes: object,
    ) -> list[ScoredResult]:
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be a non-negative integer, got {limit}")
        snapshot = self.publisher.current
        span_attributes = {f"related.{key}": value for key, value in attributes.items()}
        span_attributes["related.generation"] = snapshot.generation

        with bind_site(self.site), create_span(f"related.{operation}", attributes=span_attributes) as span:
            try:
                with track_latency(QUERY_LATENCY, operation=operation):
                    results = run(snapshot)
            except QueryError as exc:
                QUERY_COUNT.labels(operation=operation, status="error").inc()
                logger.warning("Related query %s failed: %s", operation, exc, extra={"operation": operation})
                raise
            QUERY_COUNT.labels(operation=operation, status="ok").inc()
            span.set_attribute("related.results", len(results))

        logger.debug(
            "Related query %s returned %s results (generation=%s)",
            operation,
            len(results),
            snapshot.generation,
        )
        return _truncate(results, limit)


def _truncate(items: list[T], limit: int | None) -> list[T]:
    if limit is None:
        return items
    return items[:limit]
