"""Unit tests for the caller-facing relatedness service."""

from datetime import datetime

from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY
import pytest

from related_content.config import Settings
from related_content.domain.model import ContentDocument, KeyValues, KeywordValue
from related_content.domain.related import IndexConfig
from related_content.related.errors import ConfigError, EmptyCriteriaError, UnknownIndexError
from related_content.related.registry import IndexRegistry
from related_content.service_layer.related_service import RelatedContentService


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def pages() -> list[ContentDocument]:
    return [
        ContentDocument.create("page1", title="Page 1", date=datetime(2017, 1, 3), keywords=["hugo", "says"]),
        ContentDocument.create("page2", title="Page 2", date=datetime(2017, 1, 2), keywords=["hugo", "rocks"]),
        ContentDocument.create("page3", title="Page 3", date=datetime(2017, 1, 1), keywords=["bep", "says"]),
    ]


@pytest.fixture
def service(pages) -> RelatedContentService:
    svc = RelatedContentService(IndexRegistry([IndexConfig(name="keywords")]), site="blog")
    svc.rebuild(pages)
    return svc


@pytest.mark.unit
class TestRelatedContentService:
    def test_related_to(self, service):
        results = service.related_to("keywords", [KeywordValue("hugo"), KeywordValue("rocks")])
        assert [r.identity for r in results] == ["page2", "page1"]

    def test_related_to_criteria(self, service):
        results = service.related_to_criteria(KeyValues.from_strings("keywords", "bep", "rocks"))
        assert [r.identity for r in results] == ["page2", "page3"]

    def test_related_and_related_indices(self, service, pages):
        assert [r.identity for r in service.related(pages[0])] == ["page2", "page3"]
        assert service.related_indices(pages[0], ["keywords"]) == service.related(pages[0])

    def test_limit_truncates(self, service, pages):
        assert [r.identity for r in service.related(pages[0], limit=1)] == ["page2"]
        assert service.related(pages[0], limit=0) == []

    def test_negative_limit_rejected(self, service, pages):
        with pytest.raises(ValueError, match="non-negative"):
            service.related(pages[0], limit=-1)
        with pytest.raises(ValueError, match="non-negative"):
            service.related_to("keywords", ["hugo"], limit=-3)

    def test_related_to_accepts_plain_strings(self, service):
        results = service.related_to("keywords", ["hugo", "rocks"])
        assert [r.identity for r in results] == ["page2", "page1"]

    def test_resolve_returns_documents(self, service, pages):
        results = service.related(pages[0])
        assert service.resolve(results) == [pages[1], pages[2]]

    def test_resolve_drops_documents_missing_after_rebuild(self, service, pages):
        results = service.related(pages[0])
        service.rebuild(pages[:2])
        assert service.resolve(results) == [pages[1]]

    def test_empty_before_first_rebuild(self):
        svc = RelatedContentService(IndexRegistry([IndexConfig(name="keywords")]))
        assert svc.related_to("keywords", [KeywordValue("hugo")]) == []
        assert svc.stats()["documents"] == 0

    def test_stats(self, service):
        stats = service.stats()
        assert stats["site"] == "blog"
        assert stats["generation"] == 1
        assert stats["documents"] == 3

    def test_errors_propagate(self, service, pages):
        with pytest.raises(UnknownIndexError):
            service.related_to("tags", [KeywordValue("hugo")])
        with pytest.raises(EmptyCriteriaError):
            service.related_to("keywords", [])
        with pytest.raises(UnknownIndexError):
            service.related_indices(pages[0], ["tags"])

    def test_failed_query_is_counted_and_logged(self, service, caplog):
        labels = {"operation": "related_to", "status": "error"}
        before = _sample("related_queries_total", labels)

        with pytest.raises(UnknownIndexError):
            service.related_to("tags", [KeywordValue("x")])

        assert _sample("related_queries_total", labels) == before + 1
        assert "Related query related_to failed" in caplog.text

    def test_successful_query_is_counted(self, service):
        labels = {"operation": "related", "status": "ok"}
        before = _sample("related_queries_total", labels)
        service.related(ContentDocument.create("x", keywords=["hugo"]))
        assert _sample("related_queries_total", labels) == before + 1

    def test_rebuild_updates_document_gauge(self, service, pages):
        service.rebuild(pages[:2])
        assert _sample("related_snapshot_documents", {"site": "blog"}) == 2

    def test_spans_are_recorded(self, service, span_exporter):
        service.related_to("keywords", [KeywordValue("hugo")])
        with pytest.raises(UnknownIndexError):
            service.related_to("tags", [KeywordValue("hugo")])

        spans = [span for span in span_exporter.get_finished_spans() if span.name == "related.related_to"]
        assert len(spans) == 2
        assert spans[0].attributes["related.results"] == 2
        assert spans[0].attributes["related.index"] == "keywords"
        assert spans[0].attributes["related.site"] == "blog"
        assert spans[1].status.status_code is StatusCode.ERROR

    def test_rebuild_span(self, pages, span_exporter):
        svc = RelatedContentService(IndexRegistry([IndexConfig(name="keywords")]))
        svc.rebuild(pages)

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "related.rebuild"
        assert span.attributes["related.documents"] == 3
        assert span.attributes["related.generation"] == 1
        assert span.attributes["related.site"] == "default"


@pytest.mark.unit
class TestServiceFromSettings:
    def test_builds_registry_and_publisher(self, pages):
        settings = Settings(
            indices=[IndexConfig(name="keywords"), IndexConfig(name="tags", weight=2)],
            build_workers=2,
        )
        svc = RelatedContentService.from_settings(settings, site="docs")

        assert svc.registry.names() == ("keywords", "tags")
        assert svc.publisher.max_workers == 2
        svc.rebuild(pages)
        assert svc.snapshot.index_names == ("keywords", "tags")

    def test_duplicate_index_names_fail_before_build(self):
        settings = Settings(indices=[IndexConfig(name="tags"), IndexConfig(name="tags")])
        with pytest.raises(ConfigError):
            RelatedContentService.from_settings(settings)
