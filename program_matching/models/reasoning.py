"""Reasoning-service value objects: judgments and the corpus session handle."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


_DEFAULTS = {"score": 0.5, "confidence": 0.7}


class ReasoningJudgment(BaseModel):
    """One (score, reasons, confidence) judgment returned by the reasoning service."""

    program_id: Optional[str] = None
    score: float = 0.5
    reasons: list[str] = Field(default_factory=list)
    confidence: float = 0.7

    @field_validator("score", "confidence", mode="before")
    @classmethod
    def clamp_unit(cls, v, info: ValidationInfo):
        if v is None:
            return _DEFAULTS[info.field_name]
        try:
            value = float(v)
        except (TypeError, ValueError):
            raise ValueError(f"{info.field_name} must be a number, got {v!r}")
        return max(0.0, min(1.0, value))

    @field_validator("reasons", mode="before")
    @classmethod
    def reasons_as_strings(cls, v):
        if not isinstance(v, list):
            return []
        return [str(r).strip() for r in v if str(r).strip()]


class CorpusSession(BaseModel):
    """Handles of the pre-indexed program corpus and the assistant bound to it.

    Lifecycle: created once at startup (from config or by indexing), replaced
    only through ``Reasoner.reinitialize()``, read-only otherwise.
    """

    model_config = ConfigDict(frozen=True)

    vector_store_id: str
    assistant_id: str
    file_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
