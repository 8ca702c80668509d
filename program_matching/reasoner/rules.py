"""Local rule-based enhancement of weighted scores.

Adjusts a candidate's composite score by a few bounded heuristics and adds
explanatory reasons. Deterministic and offline; this is the last line of the
reasoning fallback chain and the per-item fallback for low-confidence
judgments.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..config.lexicon import (
    CATEGORY_EXPORT,
    CATEGORY_MANAGEMENT,
    CATEGORY_STARTUP,
    CATEGORY_TECH,
    DEFAULT_LEXICON,
    MatchingLexicon,
)
from ..models import MAX_MATCH_REASONS, EntityType, RequesterProfile, ScoredCandidate, UrgencyTier
from ..models.scored_candidate import SOURCE_RULE_BASED

# Fixed confidence reported for locally enhanced matches
RULE_BASED_CONFIDENCE = 0.5

PURPOSE_WEIGHT = 0.2
GROWTH_STAGE_BONUS = 0.1
URGENCY_BONUS = 0.05
INNOVATION_BONUS = 0.05

_NON_WORD = re.compile(r"[^\w\s]")


@dataclass
class PurposeAlignment:
    score: float
    key_matches: List[str] = field(default_factory=list)


def dedupe_reasons(reasons: List[str], limit: int = MAX_MATCH_REASONS) -> List[str]:
    return list(dict.fromkeys(r for r in reasons if r))[:limit]


class RuleBasedEnhancer:
    """Purpose, growth-stage, urgency and innovation heuristics."""

    def __init__(self, lexicon: MatchingLexicon = DEFAULT_LEXICON):
        self.lexicon = lexicon

    def enhance(
        self,
        candidate: ScoredCandidate,
        profile: RequesterProfile,
        now: Optional[datetime] = None,
    ) -> ScoredCandidate:
        """Return a copy with the adjusted score, extra reasons and rule-based provenance."""
        now = now or datetime.now(timezone.utc)
        return candidate.model_copy(
            update={
                "match_score": self.adjust_score(candidate, profile, now),
                "match_reasons": self.enhance_reasons(candidate, profile, now),
                "confidence": RULE_BASED_CONFIDENCE,
                "reasoning_source": SOURCE_RULE_BASED,
            }
        )

    # ------------------------------------------------------------------
    # Score
    # ------------------------------------------------------------------

    def adjust_score(self, candidate: ScoredCandidate, profile: RequesterProfile, now: datetime) -> float:
        program = candidate.program
        score = candidate.composite_score

        # At most +/-0.1 for purpose alignment
        alignment = self.purpose_alignment(profile.purpose_text, program.description)
        score += (alignment.score - 0.5) * PURPOSE_WEIGHT

        if self.is_optimal_growth_stage(candidate, profile):
            score += GROWTH_STAGE_BONUS

        if self.is_perfect_urgency_match(candidate, profile, now):
            score += URGENCY_BONUS

        if self.has_innovation_keywords(program.description):
            score += INNOVATION_BONUS

        return max(0.0, min(1.0, score))

    def is_optimal_growth_stage(self, candidate: ScoredCandidate, profile: RequesterProfile) -> bool:
        category = self.lexicon.normalize_category(candidate.program.category)
        band = profile.employee_band.value

        if profile.entity_type == EntityType.STARTUP and category == CATEGORY_STARTUP:
            return True
        if band == "1-9" and category == CATEGORY_TECH:
            return True
        if band == "50-99" and category in (CATEGORY_EXPORT, CATEGORY_MANAGEMENT):
            return True
        return False

    def is_perfect_urgency_match(self, candidate: ScoredCandidate, profile: RequesterProfile, now: datetime) -> bool:
        """Deadline falls in the back half of the urgency horizon; rolling suits long horizons only."""
        days_left = candidate.program.days_until_deadline(now)
        if days_left is None:
            return profile.urgency == UrgencyTier.LONG

        horizon = profile.urgency.horizon_days
        return horizon * 0.5 <= days_left <= horizon

    def has_innovation_keywords(self, text: str) -> bool:
        lowered = (text or "").lower()
        return any(kw.lower() in lowered for kw in self.lexicon.innovation_keywords)

    # ------------------------------------------------------------------
    # Purpose alignment
    # ------------------------------------------------------------------

    def business_keywords(self, text: str) -> List[str]:
        """Words of ``text`` that contain, or are contained in, a business keyword."""
        words = [w for w in _NON_WORD.sub(" ", text or "").split() if len(w) > 1]
        keywords = [k.lower() for k in self.lexicon.business_keywords]
        return [
            w for w in words
            if any(k in w.lower() or w.lower() in k for k in keywords)
        ]

    def is_semantic_match(self, first: str, second: str) -> bool:
        a, b = first.lower(), second.lower()
        if a == b:
            return True
        for group in self.lexicon.synonym_groups:
            synonyms = [s.lower() for s in group]
            if any(a in s for s in synonyms) and any(b in s for s in synonyms):
                return True
        return False

    def purpose_alignment(self, purpose: str, description: str) -> PurposeAlignment:
        """Share of purpose keywords with a synonym-aware match in the description."""
        if not purpose or not description:
            return PurposeAlignment(score=0.5)

        purpose_keywords = self.business_keywords(purpose)
        description_keywords = self.business_keywords(description)

        matches = []
        for p in purpose_keywords:
            for d in description_keywords:
                if self.is_semantic_match(p, d):
                    matches.append(p)

        score = min(1.0, len(matches) / max(len(purpose_keywords), 1))
        return PurposeAlignment(score=score, key_matches=list(dict.fromkeys(matches)))

    # ------------------------------------------------------------------
    # Reasons
    # ------------------------------------------------------------------

    def enhance_reasons(self, candidate: ScoredCandidate, profile: RequesterProfile, now: datetime) -> List[str]:
        reasons = list(candidate.match_reasons)

        alignment = self.purpose_alignment(profile.purpose_text, candidate.program.description)
        if alignment.score > 0.7:
            reasons.append(f"{round(alignment.score * 100)}% aligned with your business purpose")
            if alignment.key_matches:
                reasons.append(f"Key matches: {', '.join(alignment.key_matches)}")

        stage = self.growth_stage_reason(candidate, profile, now)
        if stage:
            reasons.append(stage)

        efficiency = self.efficiency_reason(candidate, profile)
        if efficiency:
            reasons.append(efficiency)

        return dedupe_reasons(reasons)

    def growth_stage_reason(self, candidate: ScoredCandidate, profile: RequesterProfile, now: datetime) -> Optional[str]:
        age = profile.company_age(now.date())
        category = self.lexicon.normalize_category(candidate.program.category)

        if age <= 3 and category == CATEGORY_STARTUP:
            return "Tailored to early-stage startups"
        if 3 < age <= 7 and category == CATEGORY_TECH:
            return "Suits technology development at the growth stage"
        if age > 7 and category == CATEGORY_EXPORT:
            return "Favours established companies expanding overseas"
        return None

    def estimate_financial_need(self, profile: RequesterProfile) -> float:
        need = self.lexicon.financial_need.get(
            profile.employee_band.value, self.lexicon.financial_need.get("1-9", 50_000_000)
        )
        purpose = (profile.purpose_text or "").lower()
        if any(kw.lower() in purpose for kw in self.lexicon.development_keywords):
            need *= 1.5
        return need

    def efficiency_reason(self, candidate: ScoredCandidate, profile: RequesterProfile) -> Optional[str]:
        program = candidate.program
        if not program.amount_max or not program.support_rate:
            return None

        support_amount = program.amount_max * program.support_rate
        if support_amount >= self.estimate_financial_need(profile) * 0.8:
            return "Covers most of your estimated funding need"

        if program.support_rate >= 0.8:
            return f"High support rate keeps your own contribution low ({round(program.support_rate * 100)}%)"

        return None
