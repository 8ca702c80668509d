"""Candidate repository implementations."""

from .base import ProgramQuery, ProgramRepository, matches_query
from .client import SupabaseProgramRepository
from .memory import InMemoryProgramRepository

__all__ = [
    "ProgramQuery",
    "ProgramRepository",
    "matches_query",
    "SupabaseProgramRepository",
    "InMemoryProgramRepository",
]
