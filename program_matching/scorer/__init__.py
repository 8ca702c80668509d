"""Weighted business-fit scoring for support programs."""

from .engine import DEFAULT_SCORING_LIMIT, WeightedScorer
from .weights import DEFAULT_WEIGHTS, ScoringWeights, load_weights, save_weights

__all__ = [
    "DEFAULT_SCORING_LIMIT",
    "WeightedScorer",
    "DEFAULT_WEIGHTS",
    "ScoringWeights",
    "load_weights",
    "save_weights",
]
