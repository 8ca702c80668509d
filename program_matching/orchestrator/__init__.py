"""Pipeline sequencing and response assembly."""

from .coordinator import MatchingOrchestrator

__all__ = ["MatchingOrchestrator"]
