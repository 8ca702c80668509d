"""Lexical relevance narrowing of eligible programs."""

from .filter import KeywordRelevanceFilter, RelevanceFilter, extract_keywords

__all__ = ["RelevanceFilter", "KeywordRelevanceFilter", "extract_keywords"]
