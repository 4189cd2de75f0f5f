"""Adapters that turn external content sources into relatedness documents."""

from related_content.adapters.corpus import CorpusLoadError, load_corpus, parse_corpus


__all__ = ["CorpusLoadError", "load_corpus", "parse_corpus"]
