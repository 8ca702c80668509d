"""In-memory program repository (fixtures, local runs, tests)."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import ProgramCandidate
from .base import ProgramQuery, ProgramRepository, matches_query

logger = logging.getLogger(__name__)


class InMemoryProgramRepository(ProgramRepository):
    """Holds programs in a list and evaluates ProgramQuery predicates in Python."""

    def __init__(self, programs: Iterable[ProgramCandidate] = (), lexicon: MatchingLexicon = DEFAULT_LEXICON):
        self._programs: List[ProgramCandidate] = list(programs)
        self.lexicon = lexicon

    @classmethod
    def from_json(cls, filepath: str, lexicon: MatchingLexicon = DEFAULT_LEXICON) -> "InMemoryProgramRepository":
        """Load programs from a JSON array (or ``{"programs": [...]}``) file."""
        path = Path(filepath)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("programs", [])
        programs = [ProgramCandidate(**row) for row in data]
        logger.info("Loaded %d programs from %s", len(programs), path)
        return cls(programs, lexicon)

    def add(self, program: ProgramCandidate) -> None:
        self._programs.append(program)

    def all_programs(self) -> List[ProgramCandidate]:
        return list(self._programs)

    def find_programs(self, query: ProgramQuery) -> List[ProgramCandidate]:
        now = query.now or datetime.now(timezone.utc)
        return [p for p in self._programs if matches_query(p, query, now, self.lexicon)]
