"""Atomic publication of relatedness snapshots."""

from __future__ import annotations

from collections.abc import Iterable
import logging
import threading

from related_content.domain.model import Document
from related_content.related.inverted_index import RelatednessSnapshot, build_snapshot
from related_content.related.registry import IndexRegistry


logger = logging.getLogger(__name__)


class SnapshotPublisher:
    """Owns the current snapshot and swaps in rebuilt ones.

    Readers take ``current`` once per query and keep using that object, so a
    query never mixes two corpus versions. Rebuilds are serialised with a lock;
    reads never take it.
    """

    def __init__(self, registry: IndexRegistry, *, max_workers: int = 1) -> None:
        self.registry = registry
        self.max_workers = max_workers
        self._rebuild_lock = threading.Lock()
        self._snapshot = build_snapshot((), registry, generation=0)

    @property
    def current(self) -> RelatednessSnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._snapshot.generation

    def rebuild(self, documents: Iterable[Document]) -> RelatednessSnapshot:
        """Build a snapshot from ``documents`` and publish it."""
        with self._rebuild_lock:
            snapshot = build_snapshot(
                documents,
                self.registry,
                max_workers=self.max_workers,
                generation=self._snapshot.generation + 1,
            )
            self._snapshot = snapshot
        logger.info(
            "Published related snapshot generation=%s with %s documents",
            snapshot.generation,
            len(snapshot),
        )
        return snapshot
