"""Reasoning tiers: corpus search, batched per-item judgments, local rules.

Each tier exposes ``attempt()`` (may raise) and ``safe_attempt()`` (never
raises). The Reasoner walks the tiers in order and keeps the first success.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..models import (
    MAX_MATCH_REASONS,
    CorpusSession,
    ReasoningJudgment,
    RequesterProfile,
    ScoredCandidate,
)
from ..models.scored_candidate import SOURCE_BATCH, SOURCE_CORPUS_SEARCH, SOURCE_RULE_BASED
from .client import ReasoningClient
from .errors import ReasoningServiceError, ReasoningUnavailableError
from .rules import RuleBasedEnhancer, dedupe_reasons

logger = logging.getLogger(__name__)

# Judgments at or below this confidence are replaced by local rules
CONFIDENCE_THRESHOLD = 0.5


@dataclass
class TierOutcome:
    """Result of one tier attempt."""

    tier: str
    success: bool
    matches: List[ScoredCandidate] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: float = 0.0


def merge_judgment(
    candidate: ScoredCandidate,
    judgment: Optional[ReasoningJudgment],
    fallback: Callable[[ScoredCandidate], ScoredCandidate],
    source: str,
) -> ScoredCandidate:
    """Combine one external judgment with one candidate.

    The judgment wins only when its confidence exceeds the threshold;
    otherwise (or when there is no judgment) ``fallback`` decides.
    """
    if judgment is None or judgment.confidence <= CONFIDENCE_THRESHOLD:
        return fallback(candidate)

    reasons = dedupe_reasons(judgment.reasons, MAX_MATCH_REASONS) or list(
        candidate.match_reasons[:MAX_MATCH_REASONS]
    )
    return candidate.model_copy(
        update={
            "match_score": judgment.score,
            "match_reasons": reasons,
            "confidence": judgment.confidence,
            "reasoning_source": source,
        }
    )


class ReasoningTier(ABC):
    """One strategy in the reasoning fallback chain."""

    name: str = "tier"

    def __init__(self, enhancer: RuleBasedEnhancer):
        self.enhancer = enhancer

    @abstractmethod
    async def attempt(
        self,
        candidates: Sequence[ScoredCandidate],
        profile: RequesterProfile,
        now: datetime,
    ) -> List[ScoredCandidate]:
        """Re-score ``candidates``. Raises on failure."""
        pass

    async def safe_attempt(
        self,
        candidates: Sequence[ScoredCandidate],
        profile: RequesterProfile,
        now: datetime,
    ) -> TierOutcome:
        """Attempt with full error handling; failures come back as ``success=False``."""
        start = time.monotonic()
        try:
            matches = await self.attempt(candidates, profile, now)
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "tier_complete tier=%s result=success count=%d duration_ms=%.0f",
                self.name,
                len(matches),
                duration_ms,
            )
            return TierOutcome(tier=self.name, success=True, matches=matches, duration_ms=duration_ms)
        except Exception as exc:
            duration_ms = (time.monotonic() - start) * 1000
            logger.warning(
                "tier_complete tier=%s result=failure error=%s duration_ms=%.0f",
                self.name,
                exc,
                duration_ms,
            )
            return TierOutcome(tier=self.name, success=False, error=str(exc), duration_ms=duration_ms)

    def _rule_based(self, profile: RequesterProfile, now: datetime) -> Callable[[ScoredCandidate], ScoredCandidate]:
        return lambda candidate: self.enhancer.enhance(candidate, profile, now)


class CorpusSearchTier(ReasoningTier):
    """Asks the corpus-bound assistant to judge programs for the profile."""

    name = SOURCE_CORPUS_SEARCH

    def __init__(
        self,
        client: Optional[ReasoningClient],
        enhancer: RuleBasedEnhancer,
        session_provider: Callable[[], Optional[CorpusSession]],
    ):
        super().__init__(enhancer)
        self.client = client
        self.session_provider = session_provider

    async def attempt(self, candidates, profile, now):
        session = self.session_provider()
        if self.client is None or session is None:
            raise ReasoningUnavailableError("Corpus search needs a reasoning client and a corpus session")

        judgments = await self.client.search_corpus(profile, session, now.date())
        if not judgments:
            raise ReasoningServiceError("Corpus search returned no judgments")

        fallback = self._rule_based(profile, now)
        return [
            merge_judgment(candidate, judgment, fallback, self.name)
            for candidate, judgment in zip(candidates, self.align(candidates, judgments))
        ]

    @staticmethod
    def align(
        candidates: Sequence[ScoredCandidate], judgments: Sequence[ReasoningJudgment]
    ) -> List[Optional[ReasoningJudgment]]:
        """Pair judgments with candidates by program id, or by position when no id matches."""
        by_id = {j.program_id: j for j in judgments if j.program_id}
        if any(c.id in by_id for c in candidates):
            return [by_id.get(c.id) for c in candidates]

        return [judgments[i] if i < len(judgments) else None for i in range(len(candidates))]


class BatchReasoningTier(ReasoningTier):
    """One judgment per candidate, issued concurrently in fixed-size batches."""

    name = SOURCE_BATCH

    def __init__(
        self,
        client: Optional[ReasoningClient],
        enhancer: RuleBasedEnhancer,
        batch_size: int = 5,
        batch_delay: float = 0.1,
    ):
        super().__init__(enhancer)
        self.client = client
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def attempt(self, candidates, profile, now):
        if self.client is None:
            raise ReasoningUnavailableError("Batch reasoning needs a reasoning client")

        fallback = self._rule_based(profile, now)
        results: List[ScoredCandidate] = []
        judged = 0

        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.client.judge_candidate(c, profile, now.date()) for c in batch),
                return_exceptions=True,
            )

            failed = 0
            for candidate, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    failed += 1
                    logger.debug("Judgment failed for %s: %s", candidate.id, outcome)
                    results.append(fallback(candidate))
                else:
                    judged += 1
                    results.append(merge_judgment(candidate, outcome, fallback, self.name))

            if failed:
                logger.warning(
                    "Batch %d: %d of %d judgments failed, using local rules for them",
                    start // self.batch_size + 1,
                    failed,
                    len(batch),
                )

            if start + self.batch_size < len(candidates):
                await asyncio.sleep(self.batch_delay)

        if candidates and not judged:
            raise ReasoningServiceError("Every batch judgment failed")

        return results


class RuleBasedTier(ReasoningTier):
    """Local heuristics only; no external calls."""

    name = SOURCE_RULE_BASED

    async def attempt(self, candidates, profile, now):
        return [self.enhancer.enhance(c, profile, now) for c in candidates]
