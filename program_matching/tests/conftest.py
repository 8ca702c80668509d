"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from program_matching.models import ProgramCandidate, Provider, RequesterProfile, ScoredCandidate

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed clock for every pipeline stage."""
    return NOW


@pytest.fixture
def make_program():
    """Factory for ProgramCandidate with sensible defaults."""

    def _make(program_id="P-001", **overrides):
        data = {
            "id": program_id,
            "title": "Technology development voucher",
            "description": "Funding for software development by small firms",
            "category": "02",
            "target": None,
            "region": None,
            "deadline": NOW + timedelta(days=20),
            "amount_min": None,
            "amount_max": None,
            "support_rate": None,
            "provider": Provider(name="Ministry of SMEs and Startups", type="government"),
            "tags": [],
        }
        data.update(overrides)
        return ProgramCandidate(**data)

    return _make


@pytest.fixture
def make_scored(make_program):
    """Factory for ScoredCandidate at a given composite score."""

    def _make(program_id="P-001", score=0.6, reasons=None, **program_overrides):
        return ScoredCandidate(
            program=make_program(program_id, **program_overrides),
            composite_score=score,
            match_score=score,
            match_reasons=reasons if reasons is not None else ["Exact category match"],
        )

    return _make


@pytest.fixture
def make_profile():
    """Factory for RequesterProfile (seoul tech startup, short urgency)."""

    def _make(**overrides):
        data = {
            "company_name": "Acme Labs",
            "entity_type": "startup",
            "purpose_text": "AI platform development for clinics",
            "founded_year": 2024,
            "employee_band": "1-9",
            "revenue_band": "under-1b",
            "region": "seoul",
            "target_categories": ("02",),
            "urgency": "short",
        }
        data.update(overrides)
        return RequesterProfile(**data)

    return _make


@pytest.fixture
def profile(make_profile):
    return make_profile()


@pytest.fixture
def request_payload():
    """Valid inbound matching request (camelCase, as sent by callers)."""
    return {
        "companyInfo": {
            "name": "Acme Labs",
            "entityType": "startup",
            "purposeText": "AI platform development for clinics",
            "foundedYear": 2024,
        },
        "companyScale": {
            "employeeBand": "1-9",
            "revenueBand": "under-1b",
            "region": "Seoul",
        },
        "supportPreferences": {
            "targetCategories": ["02", "06"],
            "urgencyTier": "short",
            "voucherInterest": ["rnd"],
        },
    }


@pytest.fixture
def catalogue(make_program):
    """A small program registry covering every hard-filter edge."""
    return [
        make_program(
            "TECH-NATIONWIDE",
            title="AI platform development grant",
            description="Supports AI platform development and cloud adoption",
            tags=["AI", "platform"],
            amount_min=20_000_000,
            amount_max=50_000_000,
            support_rate=0.8,
        ),
        make_program(
            "TECH-SEOUL",
            title="Seoul software voucher",
            region="서울특별시",
            target="중소기업, 소기업",
            deadline=NOW + timedelta(days=60),
        ),
        make_program(
            "STARTUP-ROLLING",
            title="Startup growth package",
            category="06",
            target="창업 7년 이내 스타트업",
            deadline=None,
            region="전국",
        ),
        make_program(
            "TECH-BUSAN",
            title="Busan manufacturing tech",
            region="부산광역시",
        ),
        make_program(
            "EXPORT-NATIONWIDE",
            title="Export marketing support",
            category="04",
        ),
        make_program(
            "TECH-CLOSED",
            title="Closed tech program",
            deadline=NOW - timedelta(days=1),
        ),
        make_program(
            "TECH-FAR",
            title="Long-horizon tech program",
            deadline=NOW + timedelta(days=200),
        ),
        make_program(
            "TECH-MIDSIZE",
            title="Mid-size company upgrade",
            target="중견기업",
        ),
    ]


@pytest.fixture
def reasoning_client():
    """ReasoningClient double: both capabilities are AsyncMocks."""
    client = MagicMock()
    client.search_corpus = AsyncMock(return_value=[])
    client.judge_candidate = AsyncMock()
    return client
