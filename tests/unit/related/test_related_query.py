"""Unit tests for relatedness queries."""

from datetime import datetime

import pytest

from related_content.adapters.corpus import parse_corpus
from related_content.domain.model import ContentDocument, KeyValues, KeywordValue
from related_content.domain.related import IndexConfig
from related_content.related.errors import (
    EmptyCriteriaError,
    NoIndicesConfiguredError,
    QueryError,
    UnknownIndexError,
)
from related_content.related.inverted_index import build_snapshot
from related_content.related.query import related, related_indices, related_to, related_to_criteria
from related_content.related.registry import IndexRegistry


def _ids(results):
    return [result.identity for result in results]


def _kw(*values):
    return [KeywordValue(value) for value in values]


@pytest.mark.unit
class TestRelatedTo:
    def test_shared_keywords_rank_first(self, snapshot):
        results = related_to(snapshot, "keywords", _kw("hugo", "rocks"))

        assert _ids(results) == ["page2", "page1"]
        assert [result.score for result in results] == [2.0, 1.0]
        assert results[0].matched_keyword_counts == {"keywords": 2}

    def test_ties_break_on_publication_time(self, snapshot):
        results = related_to(snapshot, "keywords", _kw("bep", "rocks"))

        assert _ids(results) == ["page2", "page3"]
        assert [result.score for result in results] == [1.0, 1.0]

    def test_documents_without_overlap_are_dropped(self, snapshot):
        results = related_to(snapshot, "keywords", _kw("rocks"))
        assert _ids(results) == ["page2"]

    def test_unmatched_keywords_give_empty_result(self, snapshot):
        assert related_to(snapshot, "keywords", _kw("nothing")) == []

    def test_duplicate_criteria_count_once(self, snapshot):
        results = related_to(snapshot, "keywords", _kw("hugo", "hugo", "hugo"))
        assert [result.score for result in results] == [1.0, 1.0]

    def test_unknown_index(self, snapshot):
        with pytest.raises(UnknownIndexError) as excinfo:
            related_to(snapshot, "tags", _kw("hugo"))
        assert excinfo.value.index_name == "tags"
        assert isinstance(excinfo.value, QueryError)

    def test_empty_criteria(self, snapshot):
        with pytest.raises(EmptyCriteriaError):
            related_to(snapshot, "keywords", [])

    def test_unknown_index_checked_before_empty_criteria(self, snapshot):
        with pytest.raises(UnknownIndexError):
            related_to(snapshot, "tags", [])

    def test_criteria_object(self, snapshot):
        results = related_to_criteria(snapshot, KeyValues.from_strings("keywords", "hugo", "rocks"))
        assert _ids(results) == ["page2", "page1"]

    def test_weight_scales_scores(self, pages):
        snapshot = build_snapshot(pages, IndexRegistry([IndexConfig(name="keywords", weight=2.5)]))
        results = related_to(snapshot, "keywords", _kw("hugo", "rocks"))
        assert [result.score for result in results] == [5.0, 2.5]

    def test_every_result_shares_a_keyword(self, snapshot, pages):
        criteria = _kw("says", "bep")
        for result in related_to(snapshot, "keywords", criteria):
            document = snapshot.document(result.identity)
            assert result.score > 0
            assert document.keyword_values("keywords") & set(criteria)

    def test_idempotent(self, snapshot):
        first = related_to(snapshot, "keywords", _kw("hugo", "says", "bep"))
        second = related_to(snapshot, "keywords", _kw("bep", "says", "hugo"))
        assert first == second

    def test_plain_strings_are_accepted(self, snapshot):
        expected = related_to(snapshot, "keywords", _kw("hugo", "rocks"))
        assert related_to(snapshot, "keywords", ["hugo", "rocks"]) == expected

    def test_non_string_criteria_rejected(self, snapshot):
        with pytest.raises(TypeError, match="KeywordValue or str"):
            related_to(snapshot, "keywords", [42])

    def test_mixed_naive_and_aware_dates(self):
        docs = parse_corpus(
            [
                {"id": "page1", "date": "2017-01-03", "keywords": ["hugo"]},
                {"id": "page2", "date": "2017-01-02T10:30:00+00:00", "keywords": ["hugo"]},
                {"id": "page3", "date": "2017-01-04T00:00:00+09:00", "keywords": ["hugo"]},
            ]
        )
        snapshot = build_snapshot(docs, IndexRegistry([IndexConfig(name="keywords")]))

        results = related_to(snapshot, "keywords", _kw("hugo"))

        # page3 is 2017-01-03T15:00 UTC
        assert _ids(results) == ["page3", "page1", "page2"]
        assert _ids(related(snapshot, docs[0])) == ["page3", "page2"]


@pytest.mark.unit
class TestCardinalityThresholds:
    def test_rare_keywords_ignored(self, pages):
        registry = IndexRegistry([IndexConfig(name="keywords", cardinality_threshold_low=2)])
        snapshot = build_snapshot(pages, registry)

        results = related_to(snapshot, "keywords", _kw("hugo", "rocks"))

        # "rocks" appears in a single document and is skipped
        assert _ids(results) == ["page1", "page2"]
        assert [result.score for result in results] == [1.0, 1.0]

    def test_common_keywords_ignored(self, pages):
        registry = IndexRegistry([IndexConfig(name="keywords", cardinality_threshold_high=1)])
        snapshot = build_snapshot(pages, registry)

        results = related_to(snapshot, "keywords", _kw("hugo", "rocks"))

        assert _ids(results) == ["page2"]
        assert results[0].matched_keyword_counts == {"keywords": 1}

    def test_all_keywords_filtered_gives_empty_result(self, pages):
        registry = IndexRegistry([IndexConfig(name="keywords", cardinality_threshold_low=3)])
        snapshot = build_snapshot(pages, registry)
        assert related_to(snapshot, "keywords", _kw("hugo", "says")) == []


@pytest.mark.unit
class TestRelated:
    def test_related_excludes_source(self, snapshot, pages):
        results = related(snapshot, pages[0])

        assert _ids(results) == ["page2", "page3"]
        assert [result.score for result in results] == [1.0, 1.0]

    def test_source_never_in_results(self, snapshot, pages):
        for page in pages:
            assert page.identity() not in _ids(related(snapshot, page))

    def test_no_indices_configured(self, pages):
        snapshot = build_snapshot(pages, IndexRegistry())
        with pytest.raises(NoIndicesConfiguredError):
            related(snapshot, pages[0])

    def test_source_without_keywords(self, snapshot):
        lonely = ContentDocument.create("lonely")
        assert related(snapshot, lonely) == []

    def test_source_outside_corpus(self, snapshot):
        visitor = ContentDocument.create("visitor", keywords=["says"])
        assert _ids(related(snapshot, visitor)) == ["page1", "page3"]

    def test_scores_sum_across_weighted_indices(self):
        docs = [
            ContentDocument.create("a", date=datetime(2020, 1, 1), keywords=["python"], tags=["web"]),
            ContentDocument.create("b", date=datetime(2020, 1, 2), keywords=["python"]),
            ContentDocument.create("c", date=datetime(2020, 1, 3), tags=["web"]),
            ContentDocument.create("d", date=datetime(2020, 1, 4), keywords=["python"], tags=["web"]),
        ]
        registry = IndexRegistry([IndexConfig(name="keywords", weight=1), IndexConfig(name="tags", weight=3)])
        snapshot = build_snapshot(docs, registry)

        results = related(snapshot, docs[0])

        assert _ids(results) == ["d", "c", "b"]
        assert [result.score for result in results] == [4.0, 3.0, 1.0]
        assert results[0].matched_keyword_counts == {"keywords": 1, "tags": 1}

    def test_equivalent_to_summed_related_to(self):
        docs = [
            ContentDocument.create("a", keywords=["x", "y"], tags=["t1"]),
            ContentDocument.create("b", keywords=["x"], tags=["t1", "t2"]),
            ContentDocument.create("c", keywords=["y"], tags=["t2"]),
        ]
        registry = IndexRegistry([IndexConfig(name="keywords"), IndexConfig(name="tags", weight=2)])
        snapshot = build_snapshot(docs, registry)

        expected: dict[str, float] = {}
        for name in registry.names():
            for result in related_to(snapshot, name, docs[0].keyword_values(name)):
                expected[result.identity] = expected.get(result.identity, 0) + result.score
        expected.pop("a")

        assert {result.identity: result.score for result in related(snapshot, docs[0])} == expected


@pytest.mark.unit
class TestRelatedIndices:
    def test_single_index_matches_related(self, snapshot, pages):
        assert related_indices(snapshot, pages[0], ["keywords"]) == related(snapshot, pages[0])

    def test_restricts_to_named_indices(self):
        docs = [
            ContentDocument.create("a", keywords=["python"], tags=["web"]),
            ContentDocument.create("b", keywords=["python"]),
            ContentDocument.create("c", tags=["web"]),
        ]
        registry = IndexRegistry([IndexConfig(name="keywords"), IndexConfig(name="tags")])
        snapshot = build_snapshot(docs, registry)

        assert _ids(related_indices(snapshot, docs[0], ["tags"])) == ["c"]
        assert _ids(related_indices(snapshot, docs[0], ["keywords"])) == ["b"]

    def test_unknown_index_fails_whole_query(self, snapshot, pages):
        with pytest.raises(UnknownIndexError) as excinfo:
            related_indices(snapshot, pages[0], ["keywords", "tags"])
        assert excinfo.value.index_name == "tags"

    def test_repeated_names_count_once(self, snapshot, pages):
        assert related_indices(snapshot, pages[0], ["keywords", "keywords"]) == related(snapshot, pages[0])

    def test_empty_name_list(self, snapshot, pages):
        with pytest.raises(EmptyCriteriaError):
            related_indices(snapshot, pages[0], [])
