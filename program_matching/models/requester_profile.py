"""MatchingRequest / RequesterProfile - inbound query models for one matching run."""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class EntityType(str, Enum):
    """Legal-entity type of the requesting business."""

    CORPORATION = "corporation"
    INDIVIDUAL = "individual"
    STARTUP = "startup"
    SOCIAL = "social"


class EmployeeBand(str, Enum):
    """Employee-count band."""

    MICRO = "1-9"
    SMALL = "10-49"
    MEDIUM = "50-99"
    LARGE = "100+"


class RevenueBand(str, Enum):
    """Annual revenue band (KRW)."""

    UNDER_1B = "under-1b"
    RANGE_1B_10B = "1b-10b"
    RANGE_10B_50B = "10b-50b"
    OVER_50B = "over-50b"


class UrgencyTier(str, Enum):
    """How soon the requester needs support."""

    IMMEDIATE = "immediate"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @property
    def horizon_days(self) -> int:
        """Deadline horizon in days for this tier."""
        return _HORIZON_DAYS[self]


_HORIZON_DAYS = {
    UrgencyTier.IMMEDIATE: 30,
    UrgencyTier.SHORT: 90,
    UrgencyTier.MEDIUM: 180,
    UrgencyTier.LONG: 365,
}


class RequestValidationError(ValueError):
    """Raised when an inbound matching request is malformed.

    Carries field-level detail so callers can surface it per input field.
    """

    def __init__(self, errors: list[dict[str, str]]):
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Invalid matching request ({len(errors)} error(s)): {fields}")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "RequestValidationError":
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        return cls(errors)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyInfo(_CamelModel):
    """Basic company descriptors."""

    name: str = Field(..., min_length=1, max_length=100, description="Company name")
    entity_type: EntityType = Field(..., description="Legal-entity type")
    purpose_text: Optional[str] = Field(None, max_length=1000, description="Free-text business purpose")
    founded_year: int = Field(..., ge=1900, description="Founding year")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Company name is required")
        return v.strip()

    @field_validator("founded_year")
    @classmethod
    def founded_not_in_future(cls, v: int) -> int:
        if v > date.today().year:
            raise ValueError(f"Founding year {v} is in the future")
        return v


class CompanyScale(_CamelModel):
    """Company size and location."""

    employee_band: EmployeeBand
    revenue_band: RevenueBand
    region: str = Field(..., min_length=1, max_length=50, description="Region code, e.g. 'seoul'")

    @field_validator("region")
    @classmethod
    def normalize_region(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Region is required")
        return v


class SupportPreferences(_CamelModel):
    """What kind of support the requester is after."""

    target_categories: list[str] = Field(default_factory=list, max_length=10)
    urgency_tier: UrgencyTier
    voucher_interest: list[str] = Field(default_factory=list, max_length=5)


class MatchingRequest(_CamelModel):
    """Inbound matching request.

    Example payload::

        {
          "companyInfo": {"name": "Acme", "entityType": "startup",
                          "purposeText": "AI platform development", "foundedYear": 2022},
          "companyScale": {"employeeBand": "1-9", "revenueBand": "under-1b", "region": "seoul"},
          "supportPreferences": {"targetCategories": ["02"], "urgencyTier": "short"}
        }
    """

    company_info: CompanyInfo
    company_scale: CompanyScale
    support_preferences: SupportPreferences

    @classmethod
    def parse(cls, payload: dict[str, Any]) -> "MatchingRequest":
        """Validate a raw payload, raising RequestValidationError on failure."""
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise RequestValidationError.from_pydantic(exc) from exc

    def to_profile(self) -> "RequesterProfile":
        info = self.company_info
        scale = self.company_scale
        prefs = self.support_preferences
        return RequesterProfile(
            company_name=info.name,
            entity_type=info.entity_type,
            purpose_text=(info.purpose_text or "").strip(),
            founded_year=info.founded_year,
            employee_band=scale.employee_band,
            revenue_band=scale.revenue_band,
            region=scale.region,
            target_categories=tuple(c.strip() for c in prefs.target_categories if c.strip()),
            urgency=prefs.urgency_tier,
            voucher_interest=tuple(prefs.voucher_interest),
        )


class RequesterProfile(BaseModel):
    """Immutable view of the requester used by every pipeline stage."""

    model_config = ConfigDict(frozen=True)

    company_name: str
    entity_type: EntityType
    purpose_text: str = ""
    founded_year: int
    employee_band: EmployeeBand
    revenue_band: RevenueBand
    region: Optional[str] = None
    target_categories: tuple[str, ...] = ()
    urgency: UrgencyTier = UrgencyTier.SHORT
    voucher_interest: tuple[str, ...] = ()

    def company_age(self, today: Optional[date] = None) -> int:
        """Company age in whole years."""
        today = today or date.today()
        return today.year - self.founded_year
