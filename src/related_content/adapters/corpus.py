"""Load a document corpus from a JSON file.

The file holds an array of objects. ``id`` is required, ``title`` and
``date`` (ISO-8601) are optional, and every other key whose value is a list
of strings becomes a named index::

    [
      {"id": "page1", "title": "Page 1", "date": "2017-01-03", "keywords": ["hugo", "says"]},
      {"id": "page2", "date": "2017-01-02", "keywords": ["hugo", "rocks"], "tags": ["go"]}
    ]

Keyword values are used verbatim; normalization is the content owner's job.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
import logging
from pathlib import Path
from typing import Any

import orjson

from related_content.domain.model import ContentDocument, KeywordValue


logger = logging.getLogger(__name__)

_RESERVED_KEYS = frozenset({"id", "title", "date"})


class CorpusLoadError(RuntimeError):
    """Raised when a corpus file or one of its entries cannot be converted into documents."""


def load_corpus(path: Path) -> list[ContentDocument]:
    """Read ``path`` and return its documents in file order."""
    try:
        payload = orjson.loads(path.read_bytes())
    except OSError as exc:
        raise CorpusLoadError(f"Cannot read corpus {path}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise CorpusLoadError(f"Corpus {path} is not valid JSON: {exc}") from exc

    documents = parse_corpus(payload)
    logger.info("Loaded %s documents from %s", len(documents), path)
    return documents


def parse_corpus(payload: Any) -> list[ContentDocument]:
    """Convert a decoded JSON payload into documents."""
    if not isinstance(payload, list):
        raise CorpusLoadError("Corpus must be a JSON array of document objects")
    return [_parse_entry(position, entry) for position, entry in enumerate(payload)]


def _parse_entry(position: int, entry: Any) -> ContentDocument:
    if not isinstance(entry, Mapping):
        raise CorpusLoadError(f"Corpus entry #{position} is not an object")

    identity = entry.get("id")
    if not isinstance(identity, str) or not identity:
        raise CorpusLoadError(f"Corpus entry #{position} is missing a string 'id'")

    title = entry.get("title") or ""
    if not isinstance(title, str):
        raise CorpusLoadError(f"Corpus entry '{identity}' has a non-string title")

    keywords: dict[str, frozenset[KeywordValue]] = {}
    for key, value in entry.items():
        if key in _RESERVED_KEYS:
            continue
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise CorpusLoadError(f"Corpus entry '{identity}' index '{key}' must be a list of strings")
        keywords[key] = KeywordValue.many(value)

    return ContentDocument(
        id=identity,
        title=title,
        date=_parse_date(identity, entry.get("date")),
        keywords=keywords,
    )


def _parse_date(identity: str, raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise CorpusLoadError(f"Corpus entry '{identity}' has a non-string date")
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise CorpusLoadError(f"Corpus entry '{identity}' has an invalid date {raw!r}") from exc
