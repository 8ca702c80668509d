"""Scoring weight configuration.

The five business-fit weights are data, not code: markets that care more
about region or amount can ship a JSON/YAML override instead of a patch.
"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ..config.files import read_config_file, write_config_file

WEIGHT_FIELDS = ("category", "amount", "region", "deadline", "company_size")

_SUM_TOLERANCE = 0.001


class ScoringWeights(BaseModel):
    """Weight per scoring dimension. Must sum to 1.0 so composites stay in [0, 1]."""

    category: float = 0.40
    amount: float = 0.25
    region: float = 0.15
    deadline: float = 0.10
    company_size: float = 0.10
    version: str = "1.0"

    @field_validator(*WEIGHT_FIELDS)
    @classmethod
    def unit_interval(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError(f"Weight must be between 0 and 1, got {v}")
        return v

    def model_post_init(self, __context) -> None:
        if abs(self.total - 1.0) > _SUM_TOLERANCE:
            breakdown = ", ".join(f"{name}={getattr(self, name)}" for name in WEIGHT_FIELDS)
            raise ValueError(f"Weights must sum to 1.0, got {self.total:.3f} ({breakdown})")

    @property
    def total(self) -> float:
        return sum(getattr(self, name) for name in WEIGHT_FIELDS)

    def to_dict(self) -> dict:
        return self.model_dump()


DEFAULT_WEIGHTS = ScoringWeights()


def load_weights(filepath: Optional[str] = None) -> ScoringWeights:
    """Weights from a JSON/YAML file, or the defaults when no path is given.

    Raises:
        FileNotFoundError: If filepath provided but doesn't exist
        ValueError: If the format is unsupported or the weights are invalid
    """
    if not filepath:
        return DEFAULT_WEIGHTS
    return ScoringWeights(**read_config_file(filepath, kind="Weights"))


def save_weights(weights: ScoringWeights, filepath: str) -> None:
    write_config_file(weights.to_dict(), filepath)
