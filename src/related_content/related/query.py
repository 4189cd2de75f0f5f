"""Relatedness queries over an immutable snapshot.

All three entry points delegate to one scoring primitive: for every index
considered, a candidate earns one point per distinct criteria keyword it
shares, multiplied by the index weight. Scores are not normalised by set
size, so sharing more distinct keywords always wins within one weight class.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence

from related_content.domain.model import Document, KeyValues, KeywordValue
from related_content.domain.related import ScoredResult
from related_content.related.errors import EmptyCriteriaError, NoIndicesConfiguredError, UnknownIndexError
from related_content.related.inverted_index import InvertedIndex, RelatednessSnapshot
from related_content.related.ranking import rank


class _ScoreAccumulator:
    """Collects distinct keyword matches per candidate and index."""

    def __init__(self, snapshot: RelatednessSnapshot) -> None:
        self._snapshot = snapshot
        self._weights: dict[str, float] = {}
        self._matches: dict[Hashable, dict[str, int]] = {}

    def add(self, index: InvertedIndex, keywords: Iterable[KeywordValue]) -> None:
        self._weights[index.name] = index.weight
        for keyword in frozenset(keywords):
            if not index.is_scorable(keyword):
                continue
            for identity in index.posting_list(keyword):
                counts = self._matches.setdefault(identity, {})
                counts[index.name] = counts.get(index.name, 0) + 1

    def results(self, *, exclude: Hashable | None = None) -> list[ScoredResult]:
        results: list[ScoredResult] = []
        for identity, counts in self._matches.items():
            if exclude is not None and identity == exclude:
                continue
            score = sum(count * self._weights[name] for name, count in counts.items())
            if score <= 0:
                continue
            document = self._snapshot.document(identity)
            results.append(
                ScoredResult(
                    identity=identity,
                    score=score,
                    matched_keyword_counts=counts,
                    publication_time=document.publication_time() if document is not None else None,
                    position=self._snapshot.position(identity),
                )
            )
        return rank(results)


def _require_index(snapshot: RelatednessSnapshot, index_name: str) -> InvertedIndex:
    index = snapshot.index(index_name)
    if index is None:
        raise UnknownIndexError(index_name)
    return index


def related_to(
    snapshot: RelatednessSnapshot,
    index_name: str,
    keyword_values: Iterable[KeywordValue | str],
) -> list[ScoredResult]:
    """Rank documents sharing any of ``keyword_values`` in ``index_name``.

    Plain strings are accepted and wrapped as ``KeywordValue``.
    """
    index = _require_index(snapshot, index_name)
    criteria = frozenset(KeywordValue.coerce(value) for value in keyword_values)
    if not criteria:
        raise EmptyCriteriaError(f"No keyword values supplied for related index '{index_name}'")

    accumulator = _ScoreAccumulator(snapshot)
    accumulator.add(index, criteria)
    return accumulator.results()


def related_to_criteria(snapshot: RelatednessSnapshot, criteria: KeyValues) -> list[ScoredResult]:
    """``related_to`` driven by a ``KeyValues`` criteria object."""
    return related_to(snapshot, criteria.name, criteria.values)


def _related_across(
    snapshot: RelatednessSnapshot,
    source: Document,
    indices: Sequence[InvertedIndex],
) -> list[ScoredResult]:
    accumulator = _ScoreAccumulator(snapshot)
    for index in indices:
        keywords = source.keyword_values(index.name)
        if keywords:
            accumulator.add(index, keywords)
    return accumulator.results(exclude=source.identity())


def related(snapshot: RelatednessSnapshot, source: Document) -> list[ScoredResult]:
    """Rank documents related to ``source`` across every registered index.

    ``source`` never appears in its own results.
    """
    if not snapshot.indices:
        raise NoIndicesConfiguredError("No related indices are configured")
    return _related_across(snapshot, source, tuple(snapshot.indices.values()))


def related_indices(
    snapshot: RelatednessSnapshot,
    source: Document,
    index_names: Iterable[str],
) -> list[ScoredResult]:
    """Like ``related`` but restricted to ``index_names``.

    Every name is validated before scoring starts; repeated names count once.
    """
    names = list(dict.fromkeys(index_names))
    if not names:
        raise EmptyCriteriaError("No related index names supplied")
    indices = [_require_index(snapshot, name) for name in names]
    return _related_across(snapshot, source, indices)
