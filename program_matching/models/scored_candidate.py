"""ScoredCandidate - per-request annotation of a ProgramCandidate through the pipeline."""

from typing import Optional

from pydantic import BaseModel, Field

from .program_candidate import ProgramCandidate

# Reasoning provenance tags
SOURCE_WEIGHTED = "weighted"
SOURCE_CORPUS_SEARCH = "corpus_search"
SOURCE_BATCH = "batch"
SOURCE_RULE_BASED = "rule_based"


class SubScores(BaseModel):
    """The five weighted-scorer factors, each in [0, 1]."""

    category: float = Field(..., ge=0.0, le=1.0)
    amount: float = Field(..., ge=0.0, le=1.0)
    region: float = Field(..., ge=0.0, le=1.0)
    deadline: float = Field(..., ge=0.0, le=1.0)
    company_size: float = Field(..., ge=0.0, le=1.0)


class ScoredCandidate(BaseModel):
    """A candidate plus everything the pipeline learned about it.

    Created per request and discarded after the response; never persisted.
    """

    program: ProgramCandidate
    relevance_score: Optional[float] = None
    sub_scores: Optional[SubScores] = None
    composite_score: float = Field(default=0.0, ge=0.0, le=1.0)
    match_score: float = Field(default=0.0, ge=0.0, le=1.0)
    match_reasons: list[str] = Field(default_factory=list)
    confidence: Optional[float] = None
    reasoning_source: str = SOURCE_WEIGHTED

    @property
    def id(self) -> str:
        return self.program.id
