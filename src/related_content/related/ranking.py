"""Deterministic ordering of scored results."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from related_content.domain.related import ScoredResult


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _as_utc(published: datetime) -> datetime:
    # naive timestamps are read as UTC so they compare with aware ones
    if published.tzinfo is None:
        return published.replace(tzinfo=timezone.utc)
    return published


def _score_and_recency(result: ScoredResult) -> tuple[float, datetime]:
    published = result.publication_time
    return (result.score, _OLDEST if published is None else _as_utc(published))


def rank(results: Iterable[ScoredResult]) -> list[ScoredResult]:
    """Order results by score desc, publication time desc, then corpus position asc.

    Missing publication times rank as the oldest; timestamps without a
    timezone are treated as UTC.
    """
    ordered = sorted(results, key=lambda result: result.position)
    # sorted() is stable with reverse=True, so corpus order survives full ties
    ordered.sort(key=_score_and_recency, reverse=True)
    return ordered
