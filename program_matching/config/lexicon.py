"""Lookup tables used by the matching stages.

Region aliases, entity/size keywords, category relations, synonym groups and
keyword sets live in one immutable ``MatchingLexicon`` that is handed to each
component at construction. Override any table with ``load_lexicon(path)`` to
localize for another market without touching scoring logic.
"""

import re
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from .files import read_config_file

# Category codes used by the program registry
CATEGORY_FINANCE = "01"
CATEGORY_TECH = "02"
CATEGORY_HR = "03"
CATEGORY_EXPORT = "04"
CATEGORY_DOMESTIC = "05"
CATEGORY_STARTUP = "06"
CATEGORY_MANAGEMENT = "07"
CATEGORY_OTHER = "09"


def contains_term(text: str, term: str) -> bool:
    """True if ``term`` occurs in ``text`` without Latin letters glued to either side.

    "national" does not hit "international"; Korean particles after a term
    ("전국에서") still count.
    """
    term = term.lower()
    return re.search(rf"(?<![a-z]){re.escape(term)}(?![a-z])", text.lower()) is not None


class MatchingLexicon(BaseModel):
    """Immutable bundle of every fixed table the pipeline consults."""

    model_config = ConfigDict(frozen=True)

    # Region code -> keywords that appear in program region text
    region_aliases: dict[str, tuple[str, ...]] = {
        "seoul": ("서울", "seoul"),
        "busan": ("부산", "busan"),
        "daegu": ("대구", "daegu"),
        "incheon": ("인천", "incheon"),
        "gwangju": ("광주", "gwangju"),
        "daejeon": ("대전", "daejeon"),
        "ulsan": ("울산", "ulsan"),
        "gyeonggi": ("경기", "gyeonggi"),
        "gangwon": ("강원", "gangwon"),
    }
    # Region code -> nearby region codes (capital region triplet)
    nearby_regions: dict[str, tuple[str, ...]] = {
        "seoul": ("gyeonggi", "incheon"),
        "gyeonggi": ("seoul", "incheon"),
        "incheon": ("seoul", "gyeonggi"),
    }
    nationwide_markers: tuple[str, ...] = ("전국", "nationwide", "national")
    unconstrained_regions: tuple[str, ...] = ("other",)

    category_aliases: dict[str, str] = {
        "finance": CATEGORY_FINANCE,
        "tech": CATEGORY_TECH,
        "technology": CATEGORY_TECH,
        "hr": CATEGORY_HR,
        "export": CATEGORY_EXPORT,
        "domestic": CATEGORY_DOMESTIC,
        "startup": CATEGORY_STARTUP,
        "management": CATEGORY_MANAGEMENT,
        "other": CATEGORY_OTHER,
    }
    related_category_groups: tuple[tuple[str, ...], ...] = (
        (CATEGORY_TECH, CATEGORY_STARTUP),
        (CATEGORY_EXPORT, CATEGORY_MANAGEMENT),
    )

    # Entity type -> eligibility-target keywords
    entity_type_keywords: dict[str, tuple[str, ...]] = {
        "startup": ("창업", "스타트업", "벤처", "startup", "venture"),
        "individual": ("개인", "소상공인", "individual", "self-employed"),
    }
    # Employee band -> eligibility-target keywords
    size_band_keywords: dict[str, tuple[str, ...]] = {
        "1-9": ("소기업", "소상공인", "micro", "small business"),
        "10-49": ("중소기업", "중소", "sme"),
        "50-99": ("중견기업", "중견", "mid-size", "midsize"),
        "100+": ("대기업", "대규모", "large enterprise"),
    }
    # Bands the hard filter constrains on; larger companies are not filtered by target text
    hard_filter_size_bands: tuple[str, ...] = ("1-9", "10-49", "50-99")

    stop_words: tuple[str, ...] = (
        "의", "이", "가", "을", "를", "에", "와", "과", "기반", "통해", "위한", "관련",
        "the", "and", "for", "with", "of", "to", "in", "on", "our", "we",
    )
    max_purpose_keywords: int = 10

    business_keywords: tuple[str, ...] = (
        "솔루션", "플랫폼", "서비스", "시스템", "기술", "개발", "제조", "생산",
        "판매", "유통", "마케팅", "컨설팅", "교육", "의료", "금융", "물류",
        "AI", "빅데이터", "IoT", "블록체인", "모바일", "웹", "앱", "소프트웨어",
        "solution", "platform", "service", "system", "technology", "development",
        "manufacturing", "marketing", "consulting", "education", "healthcare",
        "logistics", "software", "mobile", "blockchain",
    )
    synonym_groups: tuple[tuple[str, ...], ...] = (
        ("AI", "인공지능", "머신러닝", "machine learning"),
        ("개발", "제작", "구축", "구현", "development"),
        ("솔루션", "시스템", "플랫폼", "solution", "system", "platform"),
        ("서비스", "사업", "비즈니스", "service", "business"),
        ("기술", "테크", "테크놀로지", "technology"),
        ("헬스케어", "의료", "건강", "healthcare"),
        ("금융", "fintech", "핀테크"),
    )
    innovation_keywords: tuple[str, ...] = (
        "혁신", "신기술", "AI", "인공지능", "빅데이터", "IoT", "블록체인",
        "디지털", "스마트", "클라우드", "로봇", "자동화", "첨단",
        "innovation", "digital", "smart", "cloud", "robot", "automation",
    )
    development_keywords: tuple[str, ...] = ("개발", "development", "develop")

    base_amount: float = 10_000_000
    employee_multipliers: dict[str, int] = {"1-9": 1, "10-49": 2, "50-99": 3, "100+": 4}
    revenue_multipliers: dict[str, int] = {"under-1b": 1, "1b-10b": 2, "10b-50b": 3, "over-50b": 4}
    # Estimated funding need by employee band (KRW)
    financial_need: dict[str, float] = {
        "1-9": 50_000_000,
        "10-49": 200_000_000,
        "50-99": 500_000_000,
        "100+": 1_000_000_000,
    }

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def normalize_category(self, value: Optional[str]) -> Optional[str]:
        """Map a category name or code to its registry code."""
        if value is None:
            return None
        key = value.strip()
        if not key:
            return None
        return self.category_aliases.get(key.lower(), key)

    def category_variants(self, codes: Iterable[str]) -> list[str]:
        """Codes plus every alias that normalizes to one of them."""
        wanted = [c for c in (self.normalize_category(code) for code in codes) if c]
        aliases = [alias for alias, code in self.category_aliases.items() if code in wanted]
        return list(dict.fromkeys(wanted + aliases))

    def related_categories(self, requested: Iterable[str]) -> set[str]:
        """Categories related to any requested one. Unlisted codes have none."""
        wanted = {self.normalize_category(c) for c in requested}
        related: set[str] = set()
        for group in self.related_category_groups:
            if wanted.intersection(group):
                related.update(group)
        return related

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    def region_keywords(self, region: str) -> tuple[str, ...]:
        code = region.strip().lower()
        return self.region_aliases.get(code, (code,))

    def is_nationwide(self, region_text: Optional[str]) -> bool:
        if not region_text or not region_text.strip():
            return True
        lowered = region_text.lower()
        return any(contains_term(lowered, marker) for marker in self.nationwide_markers)

    def is_unconstrained_region(self, region: Optional[str]) -> bool:
        return not region or region.strip().lower() in self.unconstrained_regions

    def region_matches(self, region: str, region_text: str) -> bool:
        lowered = region_text.lower()
        return any(kw.lower() in lowered for kw in self.region_keywords(region))

    def is_nearby(self, region: str, region_text: str) -> bool:
        for nearby in self.nearby_regions.get(region.strip().lower(), ()):
            if self.region_matches(nearby, region_text):
                return True
        return False

    # ------------------------------------------------------------------
    # Eligibility targets
    # ------------------------------------------------------------------

    def target_keywords(self, entity_type: str, employee_band: str, for_filter: bool = False) -> tuple[str, ...]:
        """Keywords in target text that mark a program as aimed at this requester."""
        keywords = list(self.entity_type_keywords.get(entity_type, ()))
        if not for_filter or employee_band in self.hard_filter_size_bands:
            keywords.extend(self.size_band_keywords.get(employee_band, ()))
        return tuple(dict.fromkeys(keywords))


DEFAULT_LEXICON = MatchingLexicon()


def load_lexicon(filepath: Optional[str] = None) -> MatchingLexicon:
    """Load lexicon overrides from JSON or YAML on top of the defaults.

    Args:
        filepath: Optional path to an override file. Keys not present keep
            their default tables.

    Returns:
        MatchingLexicon instance

    Raises:
        FileNotFoundError: If filepath provided but doesn't exist
        ValueError: If the format is unsupported
    """
    if not filepath:
        return DEFAULT_LEXICON

    merged = DEFAULT_LEXICON.model_dump()
    merged.update(read_config_file(filepath, kind="Lexicon"))
    return MatchingLexicon(**merged)
