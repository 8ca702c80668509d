"""Reasoner - final re-ranking with a three-tier fallback chain."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import MAX_FINAL_MATCHES, CorpusSession, RequesterProfile, ScoredCandidate
from .client import ReasoningClient
from .rules import RuleBasedEnhancer
from .tiers import BatchReasoningTier, CorpusSearchTier, ReasoningTier, RuleBasedTier

logger = logging.getLogger(__name__)


@dataclass
class ReasoningOutcome:
    """Final matches plus the name of the tier that produced them."""

    matches: List[ScoredCandidate] = field(default_factory=list)
    tier: Optional[str] = None


class Reasoner:
    """Re-scores the weighted top candidates and keeps the best ``limit``.

    Tiers are tried in order (corpus search, batch judgments, local rules);
    the first that succeeds wins. ``rank`` never raises.

    The corpus session is set at construction and replaced only through
    ``reinitialize()``; requests read it without locking.
    """

    def __init__(
        self,
        client: Optional[ReasoningClient] = None,
        session: Optional[CorpusSession] = None,
        lexicon: MatchingLexicon = DEFAULT_LEXICON,
        batch_size: int = 5,
        batch_delay: float = 0.1,
        limit: int = MAX_FINAL_MATCHES,
        tiers: Optional[List[ReasoningTier]] = None,
    ):
        self.client = client
        self._session = session
        self.limit = limit
        self.enhancer = RuleBasedEnhancer(lexicon)

        if tiers is None:
            tiers = [
                CorpusSearchTier(client, self.enhancer, lambda: self._session),
                BatchReasoningTier(client, self.enhancer, batch_size, batch_delay),
                RuleBasedTier(self.enhancer),
            ]
        self.tiers = tiers

    @classmethod
    def from_config(cls, config, lexicon: MatchingLexicon = DEFAULT_LEXICON) -> "Reasoner":
        client = ReasoningClient.from_config(config)
        session = None
        if config.vector_store_id and config.assistant_id:
            session = CorpusSession(
                vector_store_id=config.vector_store_id,
                assistant_id=config.assistant_id,
            )
        return cls(
            client=client,
            session=session,
            lexicon=lexicon,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay_seconds,
        )

    @property
    def session(self) -> Optional[CorpusSession]:
        return self._session

    def reinitialize(self, session: CorpusSession) -> None:
        """Swap in a freshly indexed corpus session."""
        logger.info(
            "Corpus session replaced: vector_store=%s assistant=%s",
            session.vector_store_id,
            session.assistant_id,
        )
        self._session = session

    async def rank(
        self,
        candidates: Sequence[ScoredCandidate],
        profile: RequesterProfile,
        now: Optional[datetime] = None,
    ) -> ReasoningOutcome:
        """Return at most ``limit`` candidates sorted by adjusted score."""
        if not candidates:
            return ReasoningOutcome()

        now = now or datetime.now(timezone.utc)
        candidates = list(candidates)

        for tier in self.tiers:
            outcome = await tier.safe_attempt(candidates, profile, now)
            if outcome.success:
                logger.info("Reasoner: %s tier ranked %d candidates", tier.name, len(outcome.matches))
                return ReasoningOutcome(matches=self._top(outcome.matches), tier=tier.name)

        logger.error("Reasoner: every tier failed, keeping weighted order")
        return ReasoningOutcome(matches=self._top(candidates))

    def _top(self, matches: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        return sorted(matches, key=lambda m: m.match_score, reverse=True)[: self.limit]
