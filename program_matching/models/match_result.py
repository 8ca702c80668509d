"""MatchResult - response aggregate returned by the orchestrator."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .program_candidate import Provider
from .scored_candidate import ScoredCandidate

MAX_FINAL_MATCHES = 10
MAX_MATCH_REASONS = 5


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchedProgram(_CamelModel):
    """One recommended program as exposed to callers."""

    id: str
    title: str
    description: str = ""
    category: str
    provider: Provider
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    support_rate: Optional[float] = None
    region: Optional[str] = None
    deadline: Optional[datetime] = None
    match_score: float = Field(..., ge=0.0, le=1.0)
    match_reasons: list[str] = Field(..., min_length=1, max_length=MAX_MATCH_REASONS)

    @classmethod
    def from_scored(cls, scored: ScoredCandidate) -> "MatchedProgram":
        program = scored.program
        reasons = scored.match_reasons[:MAX_MATCH_REASONS] or ["Meets baseline eligibility"]
        return cls(
            id=program.id,
            title=program.title,
            description=program.description,
            category=program.category or "09",
            provider=program.provider,
            amount_min=program.amount_min,
            amount_max=program.amount_max,
            support_rate=program.support_rate,
            region=program.region,
            deadline=program.deadline,
            match_score=round(scored.match_score, 2),
            match_reasons=reasons,
        )


class StageCounts(_CamelModel):
    """Candidate counts after each pipeline stage."""

    total_candidates: int = 0
    after_hard_filter: int = 0
    after_relevance_filter: int = 0
    after_scoring: int = 0
    final: int = 0


class MatchSummary(_CamelModel):
    best_match: Optional[MatchedProgram] = None
    category_distribution: dict[str, int] = Field(default_factory=dict)
    average_match_score: float = 0.0


class MatchResult(_CamelModel):
    """Outcome of one matching request.

    ``final_matches`` is sorted descending by match score and holds at most
    ten entries.
    """

    matching_id: str
    company_name: str
    total_candidates: int = 0
    filtered_count: int = 0
    final_matches: list[MatchedProgram] = Field(default_factory=list, max_length=MAX_FINAL_MATCHES)
    summary: MatchSummary = Field(default_factory=MatchSummary)
    recommendations: list[str] = Field(default_factory=list)
    stage_counts: StageCounts = Field(default_factory=StageCounts)
    reasoning_tier: Optional[str] = None


class MatchResponse(_CamelModel):
    """Envelope handed back to the caller: ``{success, message, data}``."""

    success: bool
    message: str
    data: MatchResult

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
