"""Program corpus export and vector-store indexing."""

from .indexer import CorpusExport, CorpusIndexer, format_amount_range, to_corpus_document

__all__ = ["CorpusExport", "CorpusIndexer", "format_amount_range", "to_corpus_document"]
