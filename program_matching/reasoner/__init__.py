"""Final re-ranking with external reasoning and local fallbacks."""

from .client import ReasoningClient
from .engine import Reasoner, ReasoningOutcome
from .errors import (
    CorpusNotReadyError,
    MalformedJudgmentError,
    ReasoningServiceError,
    ReasoningTimeoutError,
    ReasoningUnavailableError,
)
from .rules import RuleBasedEnhancer
from .tiers import (
    BatchReasoningTier,
    CorpusSearchTier,
    ReasoningTier,
    RuleBasedTier,
    TierOutcome,
    merge_judgment,
)

__all__ = [
    "ReasoningClient",
    "Reasoner",
    "ReasoningOutcome",
    "CorpusNotReadyError",
    "MalformedJudgmentError",
    "ReasoningServiceError",
    "ReasoningTimeoutError",
    "ReasoningUnavailableError",
    "RuleBasedEnhancer",
    "BatchReasoningTier",
    "CorpusSearchTier",
    "ReasoningTier",
    "RuleBasedTier",
    "TierOutcome",
    "merge_judgment",
]
