"""Matching orchestrator.

Sequences the pipeline for one request:
repository query -> HardFilter -> RelevanceFilter (50) -> WeightedScorer
(top 20) -> Reasoner (top 10), then assembles the response envelope.

Validation errors reach the caller as ``RequestValidationError``. Any other
failure is converted to a ``success=False`` response; nothing else escapes.
"""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Union

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..database.base import ProgramRepository
from ..eligibility import HardFilter
from ..models import (
    MatchedProgram,
    MatchingRequest,
    MatchResponse,
    MatchResult,
    MatchSummary,
    RequesterProfile,
    StageCounts,
)
from ..reasoner import Reasoner
from ..relevance import KeywordRelevanceFilter, RelevanceFilter
from ..scorer import DEFAULT_SCORING_LIMIT, DEFAULT_WEIGHTS, ScoringWeights, WeightedScorer

logger = logging.getLogger(__name__)

CLOSING_SOON_DAYS = 30

EMPTY_RECOMMENDATIONS = [
    "No support programs match your conditions right now.",
    "Try widening your support categories or region.",
    "Check back when new programs are announced.",
]

FAILURE_MESSAGE = "A system error occurred while matching. Please try again later."


class MatchingOrchestrator:
    """Runs one matching request end to end."""

    def __init__(
        self,
        repository: ProgramRepository,
        hard_filter: Optional[HardFilter] = None,
        relevance_filter: Optional[RelevanceFilter] = None,
        scorer: Optional[WeightedScorer] = None,
        reasoner: Optional[Reasoner] = None,
        scoring_limit: int = DEFAULT_SCORING_LIMIT,
    ):
        self.repository = repository
        self.hard_filter = hard_filter or HardFilter()
        self.relevance_filter = relevance_filter or KeywordRelevanceFilter()
        self.scorer = scorer or WeightedScorer()
        self.reasoner = reasoner or Reasoner()
        self.scoring_limit = scoring_limit

    @classmethod
    def build(
        cls,
        repository: ProgramRepository,
        reasoner: Reasoner,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        lexicon: MatchingLexicon = DEFAULT_LEXICON,
    ) -> "MatchingOrchestrator":
        """Wire every stage with one shared lexicon."""
        return cls(
            repository,
            hard_filter=HardFilter(lexicon),
            relevance_filter=KeywordRelevanceFilter(lexicon),
            scorer=WeightedScorer(weights, lexicon),
            reasoner=reasoner,
        )

    async def match(
        self,
        request: Union[MatchingRequest, dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> MatchResponse:
        """Match one request.

        Raises:
            RequestValidationError: If the payload is malformed or out of range
        """
        if not isinstance(request, MatchingRequest):
            request = MatchingRequest.parse(request)

        profile = request.to_profile()
        matching_id = f"matching_{uuid.uuid4().hex}"
        start = time.monotonic()

        logger.info("=" * 60)
        logger.info("Matching started: %s (%s)", matching_id, profile.company_name)

        try:
            result = await self._run(matching_id, profile, now or datetime.now(timezone.utc))
        except Exception as exc:
            logger.exception("Matching failed: %s: %s", matching_id, exc)
            return self._failure(profile.company_name)

        logger.info(
            "Matching complete: %s matches=%d tier=%s duration_ms=%.0f",
            matching_id,
            len(result.final_matches),
            result.reasoning_tier,
            (time.monotonic() - start) * 1000,
        )

        if not result.final_matches:
            return MatchResponse(success=True, message="No eligible support programs found", data=result)
        return MatchResponse(
            success=True,
            message=f"Found {len(result.final_matches)} matching support programs",
            data=result,
        )

    async def _run(self, matching_id: str, profile: RequesterProfile, now: datetime) -> MatchResult:
        counts = StageCounts()

        candidates = self.repository.find_programs(self.hard_filter.build_query(profile, now))
        counts.total_candidates = len(candidates)

        eligible = self.hard_filter.apply(profile, candidates, now)
        counts.after_hard_filter = len(eligible)
        if not eligible:
            return self._empty_result(matching_id, profile.company_name, counts)

        relevant = self.relevance_filter.filter(eligible, profile.purpose_text)
        counts.after_relevance_filter = len(relevant)

        scored = self.scorer.score(relevant, profile, now)[: self.scoring_limit]
        counts.after_scoring = len(scored)

        outcome = await self.reasoner.rank(scored, profile, now)
        matches = [MatchedProgram.from_scored(m) for m in outcome.matches]
        counts.final = len(matches)

        logger.info(
            "Stage counts: repository=%d hard_filter=%d relevance=%d scored=%d final=%d",
            counts.total_candidates,
            counts.after_hard_filter,
            counts.after_relevance_filter,
            counts.after_scoring,
            counts.final,
        )

        return MatchResult(
            matching_id=matching_id,
            company_name=profile.company_name,
            total_candidates=counts.after_hard_filter,
            filtered_count=counts.after_relevance_filter,
            final_matches=matches,
            summary=self.summarize(matches),
            recommendations=self.recommend(matches, now),
            stage_counts=counts,
            reasoning_tier=outcome.tier,
        )

    # ------------------------------------------------------------------
    # Result assembly
    # ------------------------------------------------------------------

    @staticmethod
    def summarize(matches: List[MatchedProgram]) -> MatchSummary:
        distribution: dict[str, int] = {}
        for match in matches:
            distribution[match.category] = distribution.get(match.category, 0) + 1

        average = sum(m.match_score for m in matches) / len(matches) if matches else 0.0
        return MatchSummary(
            best_match=matches[0] if matches else None,
            category_distribution=distribution,
            average_match_score=round(average, 2),
        )

    @staticmethod
    def recommend(matches: List[MatchedProgram], now: datetime) -> List[str]:
        if not matches:
            return EMPTY_RECOMMENDATIONS[:1]

        recommendations = [f"Best match: {matches[0].title}"]

        if len(matches) > 3:
            recommendations.append(f"Found {len(matches)} suitable programs in total.")

        cutoff = now + timedelta(days=CLOSING_SOON_DAYS)
        closing_soon = [m for m in matches if m.deadline and m.deadline < cutoff]
        if closing_soon:
            recommendations.append(f"{len(closing_soon)} program(s) close within a month.")

        return recommendations

    @staticmethod
    def _empty_result(matching_id: str, company_name: str, counts: StageCounts) -> MatchResult:
        logger.info("No eligible programs after hard filter, skipping later stages")
        return MatchResult(
            matching_id=matching_id,
            company_name=company_name,
            total_candidates=0,
            filtered_count=0,
            final_matches=[],
            summary=MatchSummary(),
            recommendations=list(EMPTY_RECOMMENDATIONS),
            stage_counts=counts,
        )

    @staticmethod
    def _failure(company_name: str) -> MatchResponse:
        return MatchResponse(
            success=False,
            message=FAILURE_MESSAGE,
            data=MatchResult(
                matching_id=f"error_{uuid.uuid4().hex}",
                company_name=company_name,
                recommendations=[FAILURE_MESSAGE],
            ),
        )
