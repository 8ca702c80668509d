"""Unit tests for the matching orchestrator: stage limits and response assembly."""

from datetime import timedelta

import pytest

from program_matching.config import MatchingLexicon
from program_matching.database import InMemoryProgramRepository
from program_matching.models import MatchedProgram, ScoredCandidate
from program_matching.orchestrator import MatchingOrchestrator
from program_matching.reasoner import Reasoner
from program_matching.scorer import ScoringWeights


def _matched(make_program, program_id, score, category="02", **overrides):
    scored = ScoredCandidate(
        program=make_program(program_id, category=category, **overrides),
        match_score=score,
        match_reasons=["Exact category match"],
    )
    return MatchedProgram.from_scored(scored)


@pytest.mark.asyncio
async def test_stage_limits(make_program, request_payload, now):
    """25 eligible programs: 20 are scored and 10 come back."""
    programs = [make_program(f"P-{i:02d}", title=f"AI platform program {i}") for i in range(25)]
    orchestrator = MatchingOrchestrator(InMemoryProgramRepository(programs))

    response = await orchestrator.match(request_payload, now=now)

    counts = response.data.stage_counts
    assert counts.after_hard_filter == 25
    assert counts.after_relevance_filter == 25
    assert counts.after_scoring == 20
    assert counts.final == 10
    assert len(response.data.final_matches) == 10
    assert response.message == "Found 10 matching support programs"


@pytest.mark.asyncio
async def test_relevance_limit_caps_candidates(make_program, request_payload, now):
    programs = [make_program(f"P-{i:02d}") for i in range(60)]
    orchestrator = MatchingOrchestrator(InMemoryProgramRepository(programs))

    response = await orchestrator.match(request_payload, now=now)

    assert response.data.total_candidates == 60
    assert response.data.filtered_count == 50


def test_summarize(make_program):
    matches = [
        _matched(make_program, "A", 0.9),
        _matched(make_program, "B", 0.7, category="06"),
        _matched(make_program, "C", 0.5),
    ]

    summary = MatchingOrchestrator.summarize(matches)

    assert summary.best_match.id == "A"
    assert summary.category_distribution == {"02": 2, "06": 1}
    assert summary.average_match_score == 0.7


def test_summarize_empty():
    summary = MatchingOrchestrator.summarize([])

    assert summary.best_match is None
    assert summary.average_match_score == 0.0


def test_recommendations(make_program, now):
    matches = [
        _matched(make_program, "A", 0.9, title="Cloud voucher", deadline=now + timedelta(days=5)),
        _matched(make_program, "B", 0.8, deadline=now + timedelta(days=45)),
        _matched(make_program, "C", 0.7, deadline=None),
        _matched(make_program, "D", 0.6, deadline=now + timedelta(days=29)),
    ]

    assert MatchingOrchestrator.recommend(matches, now) == [
        "Best match: Cloud voucher",
        "Found 4 suitable programs in total.",
        "2 program(s) close within a month.",
    ]


def test_recommendations_for_few_distant_matches(make_program, now):
    matches = [_matched(make_program, "A", 0.9, title="Rolling fund", deadline=None)]
    assert MatchingOrchestrator.recommend(matches, now) == ["Best match: Rolling fund"]


@pytest.mark.asyncio
async def test_build_shares_lexicon(make_program, request_payload, now):
    """A lexicon override reaches every stage."""
    lexicon = MatchingLexicon(nationwide_markers=("everywhere",))
    weights = ScoringWeights(category=0.2, amount=0.2, region=0.2, deadline=0.2, company_size=0.2)
    repository = InMemoryProgramRepository([make_program("P-1", region="전국")])

    orchestrator = MatchingOrchestrator.build(repository, Reasoner(lexicon=lexicon), weights=weights, lexicon=lexicon)
    response = await orchestrator.match(request_payload, now=now)

    # Without the default marker, "전국" is just another region
    assert orchestrator.hard_filter.lexicon is lexicon
    assert orchestrator.scorer.weights is weights
    assert response.data.final_matches == []
