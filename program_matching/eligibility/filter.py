"""Hard eligibility filter for support programs.

Implements five constraint checks. Missing region, target or deadline data
always passes: a program that does not say who it excludes is treated as
open to everyone.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..database.base import ProgramQuery
from ..models import ConstraintCheck, EligibilityResult, ProgramCandidate, RequesterProfile

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class HardFilter:
    """Categorical/structural eligibility predicates over the full candidate set."""

    def __init__(self, lexicon: MatchingLexicon = DEFAULT_LEXICON):
        self.lexicon = lexicon

    def build_query(self, profile: RequesterProfile, now: Optional[datetime] = None) -> ProgramQuery:
        """Translate the profile into repository predicates.

        The query is a pushdown optimisation only; ``apply`` re-checks every
        constraint on whatever the repository returns.
        """
        now = now or datetime.now(timezone.utc)

        region_keywords: list[str] = []
        if not self.lexicon.is_unconstrained_region(profile.region):
            region_keywords = list(self.lexicon.region_keywords(profile.region))
            region_keywords.extend(self.lexicon.nationwide_markers)

        return ProgramQuery(
            categories=self._requested_categories(profile),
            region_keywords=region_keywords,
            target_keywords=list(
                self.lexicon.target_keywords(
                    profile.entity_type.value, profile.employee_band.value, for_filter=True
                )
            ),
            deadline_before=now + timedelta(days=profile.urgency.horizon_days),
            active_only=True,
            now=now,
        )

    def apply(
        self,
        profile: RequesterProfile,
        candidates: Iterable[ProgramCandidate],
        now: Optional[datetime] = None,
    ) -> List[ProgramCandidate]:
        """Return every candidate meeting all constraints, soonest deadline first.

        Rolling (no deadline) programs sort last. Result size is unbounded.
        """
        now = now or datetime.now(timezone.utc)

        eligible = []
        rejected = 0
        for candidate in candidates:
            result = self.assess(candidate, profile, now)
            if result.is_eligible:
                eligible.append(candidate)
            else:
                rejected += 1
                logger.debug("Excluded %s: %s", candidate.id, result.first_blocker())

        eligible.sort(key=lambda c: c.deadline or _FAR_FUTURE)
        logger.info("Hard filter: %d eligible, %d excluded", len(eligible), rejected)
        return eligible

    def assess(
        self,
        candidate: ProgramCandidate,
        profile: RequesterProfile,
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """Assess one candidate against the requester.

        Performs five constraint checks:
        1. Category in requested categories
        2. Region nationwide or matching
        3. Eligibility target open or matching entity type / size band
        4. Deadline within the urgency horizon
        5. Program still open
        """
        now = now or datetime.now(timezone.utc)

        checks = [
            self._check_category(candidate, profile),
            self._check_region(candidate, profile),
            self._check_target(candidate, profile),
            self._check_horizon(candidate, profile, now),
            self._check_active(candidate, now),
        ]
        blockers = [f"{c.constraint_name}: {c.details}" for c in checks if not c.is_met]

        return EligibilityResult(
            program_id=candidate.id,
            is_eligible=not blockers,
            category_check=checks[0],
            region_check=checks[1],
            target_check=checks[2],
            horizon_check=checks[3],
            active_check=checks[4],
            blockers=blockers,
        )

    # ------------------------------------------------------------------
    # Constraint checks
    # ------------------------------------------------------------------

    def _requested_categories(self, profile: RequesterProfile) -> list[str]:
        normalized = (self.lexicon.normalize_category(c) for c in profile.target_categories)
        return list(dict.fromkeys(c for c in normalized if c))

    def _check_category(self, candidate: ProgramCandidate, profile: RequesterProfile) -> ConstraintCheck:
        requested = self._requested_categories(profile)
        if not requested:
            return ConstraintCheck(
                constraint_name="Category",
                is_met=True,
                details="No category preference"
            )

        category = self.lexicon.normalize_category(candidate.category)
        if category in requested:
            return ConstraintCheck(
                constraint_name="Category",
                is_met=True,
                details=f"Category {category} requested"
            )

        return ConstraintCheck(
            constraint_name="Category",
            is_met=False,
            details=f"Category {candidate.category} not in {', '.join(requested)}"
        )

    def _check_region(self, candidate: ProgramCandidate, profile: RequesterProfile) -> ConstraintCheck:
        if self.lexicon.is_nationwide(candidate.region):
            return ConstraintCheck(
                constraint_name="Region",
                is_met=True,
                details="Nationwide program"
            )

        if self.lexicon.is_unconstrained_region(profile.region):
            return ConstraintCheck(
                constraint_name="Region",
                is_met=True,
                details="Requester region imposes no constraint"
            )

        if self.lexicon.region_matches(profile.region, candidate.region):
            return ConstraintCheck(
                constraint_name="Region",
                is_met=True,
                details=f"Region '{candidate.region}' matches {profile.region}"
            )

        return ConstraintCheck(
            constraint_name="Region",
            is_met=False,
            details=f"Region '{candidate.region}' excludes {profile.region}"
        )

    def _check_target(self, candidate: ProgramCandidate, profile: RequesterProfile) -> ConstraintCheck:
        if not candidate.target or not candidate.target.strip():
            return ConstraintCheck(
                constraint_name="Eligibility Target",
                is_met=True,
                details="Open to all"
            )

        keywords = self.lexicon.target_keywords(
            profile.entity_type.value, profile.employee_band.value, for_filter=True
        )
        if not keywords:
            return ConstraintCheck(
                constraint_name="Eligibility Target",
                is_met=True,
                details="No target constraint for this company profile"
            )

        target = candidate.target.lower()
        hits = [kw for kw in keywords if kw.lower() in target]
        if hits:
            return ConstraintCheck(
                constraint_name="Eligibility Target",
                is_met=True,
                details=f"Target matches: {', '.join(hits[:3])}"
            )

        return ConstraintCheck(
            constraint_name="Eligibility Target",
            is_met=False,
            details=f"Target '{candidate.target}' does not cover {profile.entity_type.value}/{profile.employee_band.value}"
        )

    def _check_horizon(
        self, candidate: ProgramCandidate, profile: RequesterProfile, now: datetime
    ) -> ConstraintCheck:
        if candidate.deadline is None:
            return ConstraintCheck(
                constraint_name="Deadline Horizon",
                is_met=True,
                details="Rolling deadline"
            )

        horizon = profile.urgency.horizon_days
        if candidate.deadline <= now + timedelta(days=horizon):
            return ConstraintCheck(
                constraint_name="Deadline Horizon",
                is_met=True,
                details=f"Closes {candidate.deadline.date()} within {horizon} days"
            )

        return ConstraintCheck(
            constraint_name="Deadline Horizon",
            is_met=False,
            details=f"Closes {candidate.deadline.date()}, beyond {horizon}-day horizon"
        )

    def _check_active(self, candidate: ProgramCandidate, now: datetime) -> ConstraintCheck:
        if candidate.deadline is None or candidate.deadline >= now:
            return ConstraintCheck(
                constraint_name="Active",
                is_met=True,
                details="Accepting applications"
            )

        return ConstraintCheck(
            constraint_name="Active",
            is_met=False,
            details=f"Closed on {candidate.deadline.date()}"
        )
