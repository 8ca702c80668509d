"""ProgramCandidate - Shared model for support-program records read from the repository."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Provider(BaseModel):
    """Sponsoring organisation of a program."""

    name: str = Field(default="Unknown", description="Provider name")
    type: str = Field(default="Other", description="Provider type, e.g. government agency")


class ProgramCandidate(BaseModel):
    """Support-program record as seen by the matching pipeline.

    Read-only to the pipeline. Null ``target``, ``region`` and ``deadline``
    mean "open to all", "nationwide" and "rolling" respectively.
    """

    id: str = Field(..., description="Program identifier")
    title: str = Field(..., description="Program title")
    description: str = Field(default="", description="Free-text description")
    category: Optional[str] = Field(None, description="Category code, e.g. '02' (tech)")
    target: Optional[str] = Field(None, description="Eligibility target text; None = open to all")
    region: Optional[str] = Field(None, description="Region text; None = nationwide")
    deadline: Optional[datetime] = Field(None, description="Closing date; None = rolling")
    amount_min: Optional[float] = Field(None, description="Minimum support amount")
    amount_max: Optional[float] = Field(None, description="Maximum support amount")
    support_rate: Optional[float] = Field(None, description="Support-rate fraction (0-1)")
    provider: Provider = Field(default_factory=Provider)
    tags: list[str] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def none_description(cls, v):
        return v or ""

    @field_validator("tags", mode="before")
    @classmethod
    def none_tags(cls, v):
        return v or []

    @field_validator("deadline")
    @classmethod
    def aware_deadline(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("support_rate")
    @classmethod
    def rate_as_fraction(cls, v: Optional[float]) -> Optional[float]:
        """Registries publish rates either as 0.8 or as 80.0; store the fraction."""
        if v is None:
            return None
        if v > 1:
            v = v / 100.0
        return max(0.0, min(1.0, v))

    @property
    def is_rolling(self) -> bool:
        return self.deadline is None

    def days_until_deadline(self, now: datetime) -> Optional[int]:
        """Whole days left before the deadline (rounded up), None when rolling."""
        if self.deadline is None:
            return None
        seconds = (self.deadline - now).total_seconds()
        days = int(seconds // 86400)
        if seconds % 86400:
            days += 1
        return days
