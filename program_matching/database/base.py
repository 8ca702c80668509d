"""Candidate repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import ProgramCandidate


class ProgramQuery(BaseModel):
    """Structured predicates a repository can push down.

    Nullable program fields always satisfy the matching predicate: a null
    region passes ``region_keywords``, a null target passes
    ``target_keywords`` and a null deadline passes both deadline bounds.
    """

    categories: list[str] = Field(default_factory=list)
    region_keywords: list[str] = Field(default_factory=list)
    target_keywords: list[str] = Field(default_factory=list)
    deadline_before: Optional[datetime] = None
    active_only: bool = True
    now: Optional[datetime] = None


class ProgramRepository(ABC):
    """Read-mostly store of support programs."""

    @abstractmethod
    def find_programs(self, query: ProgramQuery) -> List[ProgramCandidate]:
        """Return programs satisfying every predicate in ``query``."""
        pass

    @abstractmethod
    def all_programs(self) -> List[ProgramCandidate]:
        """Full table scan."""
        pass

    def count_programs(self) -> int:
        return len(self.all_programs())


def matches_query(
    program: ProgramCandidate,
    query: ProgramQuery,
    now: datetime,
    lexicon: MatchingLexicon = DEFAULT_LEXICON,
) -> bool:
    """Evaluate ``query`` against one program in Python.

    Blank region or target text counts as null, and category codes are
    compared after alias normalization, the same way ``HardFilter`` reads them.
    """
    if query.categories:
        wanted = {lexicon.normalize_category(c) for c in query.categories}
        if lexicon.normalize_category(program.category) not in wanted:
            return False

    if query.region_keywords and not lexicon.is_nationwide(program.region):
        region = program.region.strip().lower()
        if not any(kw.lower() in region for kw in query.region_keywords):
            return False

    target = (program.target or "").strip().lower()
    if query.target_keywords and target:
        if not any(kw.lower() in target for kw in query.target_keywords):
            return False

    if program.deadline is not None:
        if query.active_only and program.deadline < now:
            return False
        if query.deadline_before and program.deadline > query.deadline_before:
            return False

    return True
