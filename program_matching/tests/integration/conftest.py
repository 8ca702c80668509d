"""Integration test fixtures and mock infrastructure."""

import json
from pathlib import Path
from typing import List

import pytest

from program_matching.database import InMemoryProgramRepository, ProgramQuery, ProgramRepository
from program_matching.models import ProgramCandidate

FIXTURES_DIR = Path(__file__).parent / "fixtures"

PROGRAMS_FILE = FIXTURES_DIR / "programs.json"
REQUEST_FILE = FIXTURES_DIR / "match_request.json"

# Programs in programs.json a seoul 1-9 startup (categories 02/06, short urgency) may apply to
ELIGIBLE_IDS = {
    "AI-VOUCHER",
    "MED-AI",
    "STARTUP-PKG",
    "DATA-VOUCHER",
    "SEOUL-CLOUD",
    "GLOBAL-STARTUP",
    "NATIONAL-RND",
}


class UnavailableRepository(ProgramRepository):
    """Repository whose backing store is down."""

    def __init__(self):
        self.calls = 0

    def find_programs(self, query: ProgramQuery) -> List[ProgramCandidate]:
        self.calls += 1
        raise ConnectionError("connection refused")

    def all_programs(self) -> List[ProgramCandidate]:
        raise ConnectionError("connection refused")


@pytest.fixture
def program_repository():
    return InMemoryProgramRepository.from_json(str(PROGRAMS_FILE))


@pytest.fixture
def unavailable_repository():
    return UnavailableRepository()


@pytest.fixture
def match_request():
    with open(REQUEST_FILE, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def eligible_ids():
    return set(ELIGIBLE_IDS)
