"""Keyword relevance filter.

Ranks eligible programs by how often the requester's purpose keywords occur
in their title, description and tags, then keeps the top ``limit``.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Sequence

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import ProgramCandidate, ScoredCandidate

logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE_LIMIT = 50

TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 2
TAG_WEIGHT = 1

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(purpose: str, lexicon: MatchingLexicon = DEFAULT_LEXICON) -> List[str]:
    """Split a purpose statement into at most ``lexicon.max_purpose_keywords`` keywords.

    Punctuation is stripped, single characters and stop words are dropped.
    Order of first appearance is kept.
    """
    if not purpose:
        return []

    stop_words = {w.lower() for w in lexicon.stop_words}
    keywords = []
    for token in _PUNCTUATION.sub(" ", purpose).split():
        if len(token) <= 1 or token.lower() in stop_words:
            continue
        keywords.append(token)
        if len(keywords) >= lexicon.max_purpose_keywords:
            break
    return keywords


class RelevanceFilter(ABC):
    """Narrows the eligible set to the candidates most relevant to a purpose."""

    @abstractmethod
    def filter(self, candidates: Sequence[ProgramCandidate], purpose: str) -> List[ScoredCandidate]:
        """Return at most ``limit`` candidates, most relevant first."""
        pass


class KeywordRelevanceFilter(RelevanceFilter):
    """Weighted keyword-occurrence ranking (title 3, description 2, tag 1)."""

    def __init__(self, lexicon: MatchingLexicon = DEFAULT_LEXICON, limit: int = DEFAULT_RELEVANCE_LIMIT):
        self.lexicon = lexicon
        self.limit = limit

    def filter(self, candidates: Sequence[ProgramCandidate], purpose: str) -> List[ScoredCandidate]:
        keywords = extract_keywords(purpose, self.lexicon)

        if not candidates or not keywords:
            logger.info("Relevance filter: no keywords, keeping first %d of %d", self.limit, len(candidates))
            return [ScoredCandidate(program=c) for c in candidates[: self.limit]]

        scored = [
            ScoredCandidate(program=c, relevance_score=float(self.relevance(c, keywords)))
            for c in candidates
        ]
        # sorted() is stable, so equal scores keep the deadline order from the hard filter
        scored = sorted(scored, key=lambda s: s.relevance_score, reverse=True)[: self.limit]

        logger.info(
            "Relevance filter: %d of %d kept (keywords=%s)",
            len(scored),
            len(candidates),
            ", ".join(keywords),
        )
        return scored

    @staticmethod
    def relevance(candidate: ProgramCandidate, keywords: Sequence[str]) -> int:
        title = candidate.title.lower()
        description = candidate.description.lower()
        tags = [t.lower() for t in candidate.tags]

        score = 0
        for keyword in keywords:
            kw = keyword.lower()
            if kw in title:
                score += TITLE_WEIGHT
            if kw in description:
                score += DESCRIPTION_WEIGHT
            score += TAG_WEIGHT * sum(1 for tag in tags if kw in tag)
        return score
