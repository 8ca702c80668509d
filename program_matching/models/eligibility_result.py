"""EligibilityResult - per-candidate outcome of the hard filter."""

from typing import Optional
from pydantic import BaseModel, Field


class ConstraintCheck(BaseModel):
    """Result of a single hard constraint."""

    constraint_name: str
    is_met: bool
    details: str = ""


class EligibilityResult(BaseModel):
    """All hard-constraint checks for one candidate against one requester."""

    program_id: str
    is_eligible: bool
    category_check: ConstraintCheck
    region_check: ConstraintCheck
    target_check: ConstraintCheck
    horizon_check: ConstraintCheck
    active_check: ConstraintCheck
    blockers: list[str] = Field(default_factory=list)

    @property
    def checks(self) -> list[ConstraintCheck]:
        return [
            self.category_check,
            self.region_check,
            self.target_check,
            self.horizon_check,
            self.active_check,
        ]

    def first_blocker(self) -> Optional[str]:
        return self.blockers[0] if self.blockers else None
