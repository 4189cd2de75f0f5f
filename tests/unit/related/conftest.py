"""Shared fixtures for relatedness engine tests."""

from datetime import datetime

import pytest

from related_content.domain.model import ContentDocument
from related_content.domain.related import IndexConfig
from related_content.related.inverted_index import build_snapshot
from related_content.related.registry import IndexRegistry


@pytest.fixture
def pages() -> list[ContentDocument]:
    """Three pages sharing keywords the way a small blog would."""
    return [
        ContentDocument.create("page1", title="Page 1", date=datetime(2017, 1, 3), keywords=["hugo", "says"]),
        ContentDocument.create("page2", title="Page 2", date=datetime(2017, 1, 2), keywords=["hugo", "rocks"]),
        ContentDocument.create("page3", title="Page 3", date=datetime(2017, 1, 1), keywords=["bep", "says"]),
    ]


@pytest.fixture
def keywords_registry() -> IndexRegistry:
    return IndexRegistry([IndexConfig(name="keywords", weight=1)])


@pytest.fixture
def snapshot(pages, keywords_registry):
    return build_snapshot(pages, keywords_registry)
