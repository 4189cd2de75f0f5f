"""Command line access to the relatedness engine.

Examples::

    related-content --corpus site.json related-to keywords hugo rocks
    related-content --corpus site.json related page1 --index keywords --limit 5
    related-content --corpus site.json stats
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from related_content.adapters.corpus import CorpusLoadError, load_corpus
from related_content.config import Settings
from related_content.domain.model import KeywordValue
from related_content.domain.related import ScoredResult
from related_content.observability import configure_log_exporter, configure_logging, configure_trace_exporter
from related_content.related.errors import RelatedContentError
from related_content.service_layer.related_service import RelatedContentService


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return value


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="related-content",
        description="Rank documents of a JSON corpus by shared keywords",
    )
    parser.add_argument("--corpus", type=Path, required=True, help="JSON array of documents to index")
    parser.add_argument("--log-level", default=None, help="Override RELATED_LOG_LEVEL")
    parser.add_argument("--limit", type=_non_negative_int, default=None, help="Maximum number of results to print")

    subparsers = parser.add_subparsers(dest="command", required=True)

    related_to = subparsers.add_parser("related-to", help="Documents sharing explicit keywords")
    related_to.add_argument("index", help="Index name, e.g. keywords")
    related_to.add_argument("keywords", nargs="*", help="Keyword values (exact match)")

    related = subparsers.add_parser("related", help="Documents related to a document of the corpus")
    related.add_argument("document_id", help="Identity of the source document")
    related.add_argument(
        "--index",
        dest="indices",
        action="append",
        default=None,
        help="Restrict to this index (repeatable); defaults to every configured index",
    )

    subparsers.add_parser("stats", help="Print snapshot statistics")
    return parser


def _render(service: RelatedContentService, results: Sequence[ScoredResult]) -> list[dict[str, object]]:
    snapshot = service.snapshot
    rendered: list[dict[str, object]] = []
    for result in results:
        document = snapshot.document(result.identity)
        rendered.append(
            {
                "id": result.identity,
                "title": getattr(document, "title", ""),
                "score": result.score,
                "matched": result.matched_keyword_counts,
                "date": result.publication_time,
            }
        )
    return rendered


def _emit(payload: object) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode("utf-8"))
    sys.stdout.write("\n")


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)
    configure_trace_exporter(settings.observability)
    configure_log_exporter(settings.observability)

    try:
        service = RelatedContentService.from_settings(settings)
        documents = load_corpus(args.corpus)
        service.rebuild(documents)

        if args.command == "stats":
            _emit(service.stats())
            return 0

        if args.command == "related-to":
            keywords = [KeywordValue(value) for value in args.keywords]
            results = service.related_to(args.index, keywords, limit=args.limit)
        else:
            source = service.snapshot.document(args.document_id)
            if source is None:
                print(f"Error: unknown document '{args.document_id}'", file=sys.stderr)
                return 1
            if args.indices:
                results = service.related_indices(source, args.indices, limit=args.limit)
            else:
                results = service.related(source, limit=args.limit)
    except (RelatedContentError, CorpusLoadError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    _emit(_render(service, results))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
