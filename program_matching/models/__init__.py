"""Shared Pydantic models for the matching pipeline - contract between all stages."""

from .requester_profile import (
    CompanyInfo,
    CompanyScale,
    EmployeeBand,
    EntityType,
    MatchingRequest,
    RequesterProfile,
    RequestValidationError,
    RevenueBand,
    SupportPreferences,
    UrgencyTier,
)
from .program_candidate import ProgramCandidate, Provider
from .eligibility_result import ConstraintCheck, EligibilityResult
from .scored_candidate import ScoredCandidate, SubScores
from .reasoning import CorpusSession, ReasoningJudgment
from .match_result import (
    MAX_FINAL_MATCHES,
    MAX_MATCH_REASONS,
    MatchedProgram,
    MatchResponse,
    MatchResult,
    MatchSummary,
    StageCounts,
)

__all__ = [
    "CompanyInfo",
    "CompanyScale",
    "EmployeeBand",
    "EntityType",
    "MatchingRequest",
    "RequesterProfile",
    "RequestValidationError",
    "RevenueBand",
    "SupportPreferences",
    "UrgencyTier",
    "ProgramCandidate",
    "Provider",
    "ConstraintCheck",
    "EligibilityResult",
    "ScoredCandidate",
    "SubScores",
    "CorpusSession",
    "ReasoningJudgment",
    "MAX_FINAL_MATCHES",
    "MAX_MATCH_REASONS",
    "MatchedProgram",
    "MatchResponse",
    "MatchResult",
    "MatchSummary",
    "StageCounts",
]
