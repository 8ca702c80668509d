"""Tests for the local rule-based enhancer."""

from datetime import timedelta

import pytest

from program_matching.reasoner import RuleBasedEnhancer
from program_matching.reasoner.rules import RULE_BASED_CONFIDENCE, dedupe_reasons


@pytest.fixture
def enhancer():
    return RuleBasedEnhancer()


class TestPurposeAlignment:

    def test_full_alignment(self, enhancer):
        alignment = enhancer.purpose_alignment(
            "AI platform development", "Supports AI platform development and cloud adoption"
        )

        assert alignment.score == 1.0
        assert alignment.key_matches == ["AI", "platform", "development"]

    def test_synonyms_count_as_matches(self, enhancer):
        assert enhancer.is_semantic_match("인공지능", "AI")
        assert enhancer.is_semantic_match("solution", "플랫폼")
        assert not enhancer.is_semantic_match("금융", "AI")

    def test_no_overlap(self, enhancer):
        alignment = enhancer.purpose_alignment("AI platform development", "Overseas trade exhibitions")

        assert alignment.score == 0.0
        assert alignment.key_matches == []

    def test_missing_text_is_neutral(self, enhancer):
        assert enhancer.purpose_alignment("", "Anything").score == 0.5
        assert enhancer.purpose_alignment("AI platform", "").score == 0.5


class TestAdjustScore:

    @pytest.fixture
    def neutral_profile(self, make_profile):
        # Empty purpose gives a neutral alignment
        return make_profile(purpose_text="")

    def test_no_bonus_keeps_composite(self, enhancer, make_scored, neutral_profile, now):
        candidate = make_scored(score=0.6, category="03", description="General support")
        assert enhancer.adjust_score(candidate, neutral_profile, now) == pytest.approx(0.6)

    def test_bonuses_stack(self, enhancer, make_scored, neutral_profile, now):
        candidate = make_scored(
            score=0.6,
            category="06",
            description="Smart factory rollout",
            deadline=now + timedelta(days=60),
        )
        # growth stage 0.1 + urgency 0.05 + innovation 0.05
        assert enhancer.adjust_score(candidate, neutral_profile, now) == pytest.approx(0.8)

    def test_clamped_to_unit_range(self, enhancer, make_scored, make_profile, neutral_profile, now):
        high = make_scored(score=1.0, category="06", description="AI automation")
        assert enhancer.adjust_score(high, neutral_profile, now) == 1.0

        low = make_scored(score=0.0, category="03", description="Overseas trade exhibitions")
        profile = make_profile(purpose_text="AI platform development")
        assert enhancer.adjust_score(low, profile, now) == 0.0

    def test_growth_stage(self, enhancer, make_scored, make_profile):
        startup = make_profile(entity_type="startup", employee_band="10-49")
        midsize = make_profile(entity_type="corporation", employee_band="50-99")

        assert enhancer.is_optimal_growth_stage(make_scored(category="06"), startup)
        assert enhancer.is_optimal_growth_stage(make_scored(category="02"), make_profile(employee_band="1-9"))
        assert enhancer.is_optimal_growth_stage(make_scored(category="07"), midsize)
        assert not enhancer.is_optimal_growth_stage(make_scored(category="02"), midsize)

    def test_urgency_window(self, enhancer, make_scored, make_profile, now):
        short = make_profile(urgency="short")
        long = make_profile(urgency="long")

        assert enhancer.is_perfect_urgency_match(make_scored(deadline=now + timedelta(days=45)), short, now)
        assert not enhancer.is_perfect_urgency_match(make_scored(deadline=now + timedelta(days=10)), short, now)
        assert enhancer.is_perfect_urgency_match(make_scored(deadline=None), long, now)
        assert not enhancer.is_perfect_urgency_match(make_scored(deadline=None), short, now)

    def test_innovation_keywords(self, enhancer):
        assert enhancer.has_innovation_keywords("클라우드 전환 지원")
        assert enhancer.has_innovation_keywords("Digital transformation")
        assert not enhancer.has_innovation_keywords("Working capital loans")
        assert not enhancer.has_innovation_keywords(None)


class TestReasons:

    def test_purpose_reasons_added(self, enhancer, make_scored, make_profile, now):
        candidate = make_scored(
            category="03",
            description="Supports AI platform development",
            reasons=["Exact category match"],
        )
        profile = make_profile(purpose_text="AI platform development")

        reasons = enhancer.enhance_reasons(candidate, profile, now)

        assert reasons[0] == "Exact category match"
        assert "100% aligned with your business purpose" in reasons
        assert "Key matches: AI, platform, development" in reasons

    @pytest.mark.parametrize(
        "founded,category,expected",
        [
            (2024, "06", "Tailored to early-stage startups"),
            (2021, "02", "Suits technology development at the growth stage"),
            (2010, "04", "Favours established companies expanding overseas"),
            (2010, "02", None),
        ],
    )
    def test_growth_stage_reason(self, enhancer, make_scored, make_profile, now, founded, category, expected):
        profile = make_profile(founded_year=founded)
        assert enhancer.growth_stage_reason(make_scored(category=category), profile, now) == expected

    def test_financial_need(self, enhancer, make_profile):
        assert enhancer.estimate_financial_need(make_profile(purpose_text="Retail expansion")) == 50_000_000
        # Development work raises the estimate by half
        assert enhancer.estimate_financial_need(make_profile(purpose_text="App development")) == 75_000_000
        assert enhancer.estimate_financial_need(make_profile(employee_band="100+", purpose_text="")) == 1_000_000_000

    def test_efficiency_reasons(self, enhancer, make_scored, profile):
        covers = make_scored(amount_max=100_000_000, support_rate=0.8)
        generous = make_scored(amount_max=10_000_000, support_rate=0.9)
        modest = make_scored(amount_max=10_000_000, support_rate=0.5)

        assert enhancer.efficiency_reason(covers, profile) == "Covers most of your estimated funding need"
        assert enhancer.efficiency_reason(generous, profile) == (
            "High support rate keeps your own contribution low (90%)"
        )
        assert enhancer.efficiency_reason(modest, profile) is None
        assert enhancer.efficiency_reason(make_scored(), profile) is None

    def test_enhance_marks_provenance(self, enhancer, make_scored, profile, now):
        candidate = make_scored(score=0.55, reasons=[f"reason {i}" for i in range(6)])

        enhanced = enhancer.enhance(candidate, profile, now)

        assert enhanced.confidence == RULE_BASED_CONFIDENCE
        assert enhanced.reasoning_source == "rule_based"
        assert len(enhanced.match_reasons) == 5
        assert enhanced.composite_score == 0.55
        assert candidate.reasoning_source == "weighted"

    def test_dedupe_reasons(self):
        assert dedupe_reasons(["a", "a", "", "b"]) == ["a", "b"]
        assert dedupe_reasons([str(i) for i in range(8)]) == ["0", "1", "2", "3", "4"]
        assert dedupe_reasons(["a", "b", "c"], limit=2) == ["a", "b"]
