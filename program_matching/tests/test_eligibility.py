"""Unit tests for the hard eligibility filter."""

from datetime import timedelta

import pytest

from program_matching.database import InMemoryProgramRepository
from program_matching.eligibility import HardFilter


@pytest.fixture
def hard_filter():
    return HardFilter()


def test_catalogue_filtered_and_ordered(hard_filter, catalogue, profile, now):
    """Only requested-category, in-region, open, in-horizon programs survive, soonest first."""
    eligible = hard_filter.apply(profile, catalogue, now)

    assert [p.id for p in eligible] == ["TECH-NATIONWIDE", "TECH-SEOUL"]


def test_null_fields_never_exclude(hard_filter, make_program, profile, now):
    """A program with no region, target or deadline is open to everyone."""
    program = make_program(region=None, target=None, deadline=None)

    result = hard_filter.assess(program, profile, now)

    assert result.is_eligible is True
    assert result.region_check.details == "Nationwide program"
    assert result.target_check.details == "Open to all"
    assert result.horizon_check.details == "Rolling deadline"
    assert result.blockers == []


def test_category_mismatch_blocked(hard_filter, make_program, profile, now):
    result = hard_filter.assess(make_program(category="04"), profile, now)

    assert result.is_eligible is False
    assert result.category_check.is_met is False
    assert any(b.startswith("Category") for b in result.blockers)


def test_category_aliases_normalised(hard_filter, make_program, make_profile, now):
    profile = make_profile(target_categories=("tech",))
    assert hard_filter.assess(make_program(category="02"), profile, now).is_eligible


def test_no_category_preference_passes(hard_filter, make_program, make_profile, now):
    profile = make_profile(target_categories=())
    assert hard_filter.assess(make_program(category="05"), profile, now).category_check.is_met


def test_region_alias_match(hard_filter, make_program, profile, now):
    assert hard_filter.assess(make_program(region="서울 강남구"), profile, now).is_eligible
    assert hard_filter.assess(make_program(region="Seoul Metropolitan"), profile, now).is_eligible


def test_nationwide_marker_passes(hard_filter, make_program, profile, now):
    assert hard_filter.assess(make_program(region="전국"), profile, now).is_eligible


def test_marker_inside_longer_word_is_not_nationwide(hard_filter, make_program, profile, now):
    """Region text with "international" in it is still a single region."""
    program = make_program("BUSAN", region="Busan International Finance Center")

    assert hard_filter.apply(profile, [program], now) == []
    assert hard_filter.assess(program, profile, now).region_check.is_met is False


def test_marker_with_korean_particle_is_nationwide(hard_filter, make_program, profile, now):
    assert hard_filter.assess(make_program(region="전국에서 신청 가능"), profile, now).is_eligible


def test_other_region_imposes_no_constraint(hard_filter, make_program, make_profile, now):
    profile = make_profile(region="other")
    assert hard_filter.assess(make_program(region="부산광역시"), profile, now).is_eligible


def test_region_mismatch_blocked(hard_filter, make_program, profile, now):
    result = hard_filter.assess(make_program(region="부산광역시"), profile, now)

    assert result.is_eligible is False
    assert result.region_check.is_met is False


def test_target_matches_entity_type(hard_filter, make_program, make_profile, now):
    profile = make_profile(entity_type="startup", employee_band="10-49")
    assert hard_filter.assess(make_program(target="예비 창업자 및 벤처기업"), profile, now).is_eligible


def test_target_matches_size_band(hard_filter, make_program, make_profile, now):
    profile = make_profile(entity_type="corporation", employee_band="50-99")

    assert hard_filter.assess(make_program(target="중견기업"), profile, now).is_eligible
    assert not hard_filter.assess(make_program(target="소상공인"), profile, now).is_eligible


def test_large_company_not_filtered_by_target(hard_filter, make_program, make_profile, now):
    """Companies with 100+ employees have no target keywords, so target text never blocks them."""
    profile = make_profile(entity_type="corporation", employee_band="100+")
    assert hard_filter.assess(make_program(target="소상공인 전용"), profile, now).is_eligible


def test_yesterday_deadline_excluded(hard_filter, make_program, profile, now):
    result = hard_filter.assess(make_program(deadline=now - timedelta(days=1)), profile, now)

    assert result.is_eligible is False
    assert result.active_check.is_met is False


def test_deadline_beyond_horizon_excluded(hard_filter, make_program, make_profile, now):
    program = make_program(deadline=now + timedelta(days=45))

    assert not hard_filter.assess(program, make_profile(urgency="immediate"), now).is_eligible
    assert hard_filter.assess(program, make_profile(urgency="short"), now).is_eligible


def test_rolling_programs_sorted_last(hard_filter, make_program, profile, now):
    programs = [
        make_program("ROLLING", deadline=None),
        make_program("LATE", deadline=now + timedelta(days=80)),
        make_program("SOON", deadline=now + timedelta(days=3)),
    ]

    assert [p.id for p in hard_filter.apply(profile, programs, now)] == ["SOON", "LATE", "ROLLING"]


def test_query_matches_in_python_filter(hard_filter, catalogue, profile, now):
    """The repository pushdown never drops a program the hard filter would keep."""
    query = hard_filter.build_query(profile, now)
    fetched = InMemoryProgramRepository(catalogue).find_programs(query)

    assert query.categories == ["02"]
    assert "서울" in query.region_keywords
    assert "전국" in query.region_keywords
    assert query.deadline_before == now + timedelta(days=90)
    assert {p.id for p in hard_filter.apply(profile, catalogue, now)} <= {p.id for p in fetched}


def test_query_for_unconstrained_region(hard_filter, make_profile, now):
    query = hard_filter.build_query(make_profile(region="other"), now)
    assert query.region_keywords == []
