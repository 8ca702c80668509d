"""Unit tests for the weighted business-fit scoring engine."""

from datetime import timedelta

import pytest

from program_matching.models import ScoredCandidate, SubScores
from program_matching.scorer import ScoringWeights, WeightedScorer


@pytest.fixture
def scorer():
    return WeightedScorer()


@pytest.fixture
def ideal_program(make_program):
    """Requested category, nationwide, in-window, size-matched, amount inside the expected range."""
    return make_program(
        "IDEAL",
        target="창업 7년 이내 스타트업",
        amount_min=10_000_000,
        amount_max=30_000_000,
        support_rate=0.85,
    )


def _score_one(scorer, program, profile, now):
    return scorer.score([ScoredCandidate(program=program)], profile, now)[0]


def test_ideal_match_scores_high(scorer, ideal_program, profile, now):
    scored = _score_one(scorer, ideal_program, profile, now)

    assert scored.composite_score >= 0.9
    assert scored.match_score == scored.composite_score
    assert scored.sub_scores.category == 1.0
    assert scored.sub_scores.amount == 1.0
    assert "Exact category match" in scored.match_reasons
    assert "High support rate (85%)" in scored.match_reasons


def test_oversized_amount_does_not_score_higher(scorer, ideal_program, profile, now):
    """An amount far above the expected range earns no extra credit."""
    oversized = ideal_program.model_copy(update={"amount_max": 1_000_000_000})

    ideal = _score_one(scorer, ideal_program, profile, now)
    big = _score_one(scorer, oversized, profile, now)

    assert big.sub_scores.amount < ideal.sub_scores.amount
    assert big.composite_score <= ideal.composite_score


def test_expected_amount_range(scorer, make_profile):
    assert scorer.expected_amount_range(make_profile()) == (5_000_000, 30_000_000)
    # 10M x 3 (50-99) x 2 (1b-10b)
    assert scorer.expected_amount_range(make_profile(employee_band="50-99", revenue_band="1b-10b")) == (
        30_000_000,
        180_000_000,
    )


@pytest.mark.parametrize(
    "amounts,expected",
    [
        ({}, 0.8),
        ({"amount_min": 10_000_000}, 0.8),
        ({"amount_max": 20_000_000}, 0.7),
        ({"amount_max": 400_000}, 0.2),
        ({"amount_min": 100_000_000, "amount_max": 200_000_000}, 0.5),
    ],
)
def test_amount_dimension(scorer, make_program, profile, amounts, expected):
    assert scorer._score_amount(make_program(**amounts), profile) == pytest.approx(expected)


@pytest.mark.parametrize(
    "category,expected",
    [("02", 1.0), ("06", 0.7), ("03", 0.3), (None, 0.5)],
)
def test_category_dimension(scorer, make_program, profile, category, expected):
    assert scorer._score_category(make_program(category=category), profile) == expected


@pytest.mark.parametrize(
    "region,expected",
    [
        (None, 1.0),
        ("전국", 1.0),
        ("National program", 1.0),
        ("서울특별시", 1.0),
        ("경기도", 0.7),
        ("부산광역시", 0.3),
        ("Busan International Finance Center", 0.3),
    ],
)
def test_region_dimension(scorer, make_program, profile, region, expected):
    assert scorer._score_region(make_program(region=region), profile) == expected


def test_unconstrained_requester_region(scorer, make_program, make_profile):
    assert scorer._score_region(make_program(region="부산광역시"), make_profile(region="other")) == 1.0


@pytest.mark.parametrize(
    "days,expected",
    [(20, 1.0), (90, 1.0), (150, 0.8), (250, 0.6), (300, 0.4), (-1, 0.0)],
)
def test_deadline_bands(scorer, make_program, profile, now, days, expected):
    program = make_program(deadline=now + timedelta(days=days))
    assert scorer._score_deadline(program, profile, now) == expected


def test_rolling_deadline(scorer, make_program, profile, now):
    assert scorer._score_deadline(make_program(deadline=None), profile, now) == 0.8


@pytest.mark.parametrize(
    "target,expected",
    [(None, 0.8), ("소상공인 및 소기업", 1.0), ("Venture startups", 1.0), ("중견기업", 0.5)],
)
def test_company_size_dimension(scorer, make_program, profile, target, expected):
    assert scorer._score_company_size(make_program(target=target), profile) == expected


def test_baseline_reason_when_nothing_stands_out(scorer, make_program, profile, now):
    program = make_program(
        category="03",
        region="부산광역시",
        target="중견기업",
        deadline=now + timedelta(days=300),
        amount_max=400_000,
    )

    scored = _score_one(scorer, program, profile, now)

    assert scored.match_reasons == ["Meets baseline eligibility"]
    assert 0.0 <= scored.composite_score <= 1.0


def test_sorted_descending_and_deterministic(scorer, catalogue, profile, now):
    candidates = [ScoredCandidate(program=p) for p in catalogue]

    first = scorer.score(candidates, profile, now)
    second = scorer.score(candidates, profile, now)

    scores = [s.composite_score for s in first]
    assert scores == sorted(scores, reverse=True)
    assert [(s.id, s.composite_score) for s in first] == [(s.id, s.composite_score) for s in second]


def test_score_preserves_relevance(scorer, make_program, profile, now):
    candidate = ScoredCandidate(program=make_program(), relevance_score=4.0)
    assert scorer.score([candidate], profile, now)[0].relevance_score == 4.0


def test_custom_weights(make_program, profile, now):
    weights = ScoringWeights(category=1.0, amount=0.0, region=0.0, deadline=0.0, company_size=0.0)
    scorer = WeightedScorer(weights=weights)

    assert _score_one(scorer, make_program(category="06"), profile, now).composite_score == 0.7


def test_composite_rounded(scorer):
    sub_scores = SubScores(category=0.7, amount=0.8, region=1.0, deadline=0.8, company_size=0.5)
    # 0.28 + 0.2 + 0.15 + 0.08 + 0.05
    assert scorer.composite(sub_scores) == 0.76
