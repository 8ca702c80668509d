"""Weighted business-fit scoring engine for support programs.

Implements five-dimension scoring with short fixed match reasons. Fully
deterministic: no external calls, no clock reads beyond the ``now`` passed in.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import ProgramCandidate, RequesterProfile, ScoredCandidate, SubScores
from .weights import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

DEFAULT_SCORING_LIMIT = 20

REASON_EXACT_CATEGORY = "Exact category match"
REASON_RELATED_CATEGORY = "Related support category"
REASON_REGION = "Available in your region"
REASON_COMPANY_SIZE = "Targets companies of your type and size"
REASON_DEADLINE = "Meets urgency window"
REASON_AMOUNT = "Support amount fits your company scale"
REASON_BASELINE = "Meets baseline eligibility"


class WeightedScorer:
    """Scores candidates on category, amount, region, deadline and company size.

    Dimensions (default weights):
    1. Category (40%): requested, related or unrelated support field
    2. Amount (25%): support amount against a size-derived expected range
    3. Region (15%): nationwide, same region, nearby region
    4. Deadline (10%): days left against the urgency horizon
    5. Company size (10%): target text naming the requester's type or band
    """

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS, lexicon: MatchingLexicon = DEFAULT_LEXICON):
        self.weights = weights
        self.lexicon = lexicon

    def score(
        self,
        candidates: Sequence[ScoredCandidate],
        profile: RequesterProfile,
        now: Optional[datetime] = None,
    ) -> List[ScoredCandidate]:
        """Annotate every candidate and return them sorted by composite, highest first."""
        now = now or datetime.now(timezone.utc)

        scored = []
        for candidate in candidates:
            sub_scores = self.sub_scores(candidate.program, profile, now)
            composite = self.composite(sub_scores)
            scored.append(
                candidate.model_copy(
                    update={
                        "sub_scores": sub_scores,
                        "composite_score": composite,
                        "match_score": composite,
                        "match_reasons": self.reasons(candidate.program, sub_scores),
                    }
                )
            )

        scored.sort(key=lambda s: s.composite_score, reverse=True)

        if scored:
            average = sum(s.composite_score for s in scored) / len(scored)
            logger.info("Weighted scorer: %d programs, average composite %.2f", len(scored), average)
        return scored

    def sub_scores(self, program: ProgramCandidate, profile: RequesterProfile, now: datetime) -> SubScores:
        return SubScores(
            category=self._score_category(program, profile),
            amount=self._score_amount(program, profile),
            region=self._score_region(program, profile),
            deadline=self._score_deadline(program, profile, now),
            company_size=self._score_company_size(program, profile),
        )

    def composite(self, sub_scores: SubScores) -> float:
        total = (
            sub_scores.category * self.weights.category +
            sub_scores.amount * self.weights.amount +
            sub_scores.region * self.weights.region +
            sub_scores.deadline * self.weights.deadline +
            sub_scores.company_size * self.weights.company_size
        )
        return max(0.0, min(1.0, round(total, 2)))

    def expected_amount_range(self, profile: RequesterProfile) -> tuple[float, float]:
        """Plausible support amount for the requester's size: base x multipliers x [0.5, 3]."""
        employee = self.lexicon.employee_multipliers.get(profile.employee_band.value, 1)
        revenue = self.lexicon.revenue_multipliers.get(profile.revenue_band.value, 1)
        base = self.lexicon.base_amount * employee * revenue
        return base * 0.5, base * 3

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    def _score_category(self, program: ProgramCandidate, profile: RequesterProfile) -> float:
        if not program.category or not profile.target_categories:
            return 0.5

        category = self.lexicon.normalize_category(program.category)
        requested = {self.lexicon.normalize_category(c) for c in profile.target_categories}
        if category in requested:
            return 1.0

        # Categories outside every related group simply get no bonus
        if category in self.lexicon.related_categories(requested):
            return 0.7

        return 0.3

    def _score_amount(self, program: ProgramCandidate, profile: RequesterProfile) -> float:
        if not program.amount_min and not program.amount_max:
            return 0.8

        floor, ceiling = self.expected_amount_range(profile)
        score = 0.5

        if program.amount_min and floor <= program.amount_min <= ceiling:
            score += 0.3

        # Amounts above the ceiling earn nothing
        if program.amount_max and floor <= program.amount_max <= ceiling:
            score += 0.2

        if program.amount_max and program.amount_max < floor * 0.1:
            score -= 0.3

        return max(0.0, min(1.0, score))

    def _score_region(self, program: ProgramCandidate, profile: RequesterProfile) -> float:
        if self.lexicon.is_nationwide(program.region):
            return 1.0

        if self.lexicon.is_unconstrained_region(profile.region):
            return 1.0

        if self.lexicon.region_matches(profile.region, program.region):
            return 1.0

        if self.lexicon.is_nearby(profile.region, program.region):
            return 0.7

        return 0.3

    def _score_deadline(self, program: ProgramCandidate, profile: RequesterProfile, now: datetime) -> float:
        days_left = program.days_until_deadline(now)
        if days_left is None:
            return 0.8

        if days_left < 0:
            return 0.0

        horizon = profile.urgency.horizon_days
        if days_left <= horizon:
            return 1.0
        elif days_left <= horizon * 2:
            return 0.8
        elif days_left <= horizon * 3:
            return 0.6
        else:
            return 0.4

    def _score_company_size(self, program: ProgramCandidate, profile: RequesterProfile) -> float:
        if not program.target:
            return 0.8

        target = program.target.lower()
        keywords = self.lexicon.target_keywords(profile.entity_type.value, profile.employee_band.value)
        if any(kw.lower() in target for kw in keywords):
            return 1.0

        return 0.5

    # ------------------------------------------------------------------
    # Reasons
    # ------------------------------------------------------------------

    @staticmethod
    def reasons(program: ProgramCandidate, sub_scores: SubScores) -> List[str]:
        reasons = []

        if sub_scores.category >= 0.9:
            reasons.append(REASON_EXACT_CATEGORY)
        elif sub_scores.category >= 0.7:
            reasons.append(REASON_RELATED_CATEGORY)

        if sub_scores.region >= 0.9:
            reasons.append(REASON_REGION)

        if sub_scores.company_size >= 0.9:
            reasons.append(REASON_COMPANY_SIZE)

        if sub_scores.deadline >= 0.9:
            reasons.append(REASON_DEADLINE)

        if sub_scores.amount >= 0.8:
            reasons.append(REASON_AMOUNT)

        if program.support_rate and program.support_rate >= 0.8:
            reasons.append(f"High support rate ({round(program.support_rate * 100)}%)")

        if not reasons:
            reasons.append(REASON_BASELINE)

        return reasons
