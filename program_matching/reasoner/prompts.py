"""Prompt templates for the reasoning service.

Per-item prompts ask the model to call ``analyze_matching`` with:
{"match_score": float 0-1, "match_reasons": ["reason1", ...], "confidence": float 0-1}

The corpus search prompt asks the assistant to retrieve programs itself and
answer with a JSON array of the same judgments plus the program id.
"""

from datetime import date
from typing import Optional

from ..models import ProgramCandidate, RequesterProfile

SYSTEM_PROMPT = """You are an expert in matching businesses with government support programs.
Analyze the company profile and the support program and rate how well they match.

Evaluation criteria:
1. Fit between the business purpose and the program content (40%)
2. Fit between company size and the program's eligibility target (25%)
3. Fit between the support amount and the company's needs (20%)
4. Whether regional conditions are satisfied (10%)
5. Fit between urgency and the application deadline (5%)

Score from 0.0 (no fit) to 1.0 (perfect fit) and give 3-5 concrete, practical
match reasons.

While analyzing:
- Treat missing information neutrally
- Consider how the company's growth stage fits the program
- Consider how likely the company is to actually receive and use the support"""


ASSISTANT_NAME = "Support Program Matching Expert"

ASSISTANT_INSTRUCTIONS = (
    "You are an expert in government support programs. Analyze company profiles "
    "against the indexed support programs and provide the best matches."
)

RUN_INSTRUCTIONS = (
    "Find the support programs that best fit this company and analyze each match. "
    "Give a concrete match score and reasons for each."
)


# Function schema for forced per-item judgments
ANALYZE_MATCHING_TOOL = {
    "type": "function",
    "function": {
        "name": "analyze_matching",
        "description": "Analyze how well a support program matches a company.",
        "parameters": {
            "type": "object",
            "properties": {
                "match_score": {
                    "type": "number",
                    "description": "Match score (0.0 - 1.0)",
                    "minimum": 0,
                    "maximum": 1,
                },
                "match_reasons": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Match reasons (3-5)",
                    "minItems": 3,
                    "maxItems": 5,
                },
                "confidence": {
                    "type": "number",
                    "description": "Confidence in the analysis (0.0 - 1.0)",
                    "minimum": 0,
                    "maximum": 1,
                },
            },
            "required": ["match_score", "match_reasons", "confidence"],
        },
    },
}


COMPANY_TEMPLATE = """Company profile:
- Name: {company_name}
- Business purpose: {purpose}
- Entity type: {entity_type}
- Founded: {founded_year} ({age} years)
- Employees: {employees}
- Annual revenue: {revenue}
- Region: {region}
- Urgency: {urgency}
- Categories of interest: {categories}"""


ITEM_PROMPT_TEMPLATE = """{company}

Support program:
- Title: {title}
- Description: {description}
- Category: {category}
- Provider: {provider_name} ({provider_type})
- Support amount: {amount_min} ~ {amount_max}
- Support rate: {support_rate}
- Region: {region}
- Deadline: {deadline}
- Current match score: {match_score:.2f}

Analyze all of the above and rate how well this company and program match."""


CORPUS_SEARCH_TEMPLATE = """Find the government support programs that best fit the following company and analyze them.

{company}

Requests:
1. Find the 5-10 support programs that best fit this company
2. Give each program a match score (0.0-1.0)
3. Give 3-5 concrete match reasons for each
4. Give your confidence in each analysis

Answer with a JSON array in exactly this form:
[
  {{
    "id": "<program id from the document>",
    "matchScore": 0.85,
    "matchReasons": ["reason 1", "reason 2", "reason 3"],
    "confidence": 0.9
  }}
]"""


def _format_amount(value: Optional[float]) -> str:
    return f"{value:,.0f} KRW" if value else "unknown"


def format_company(profile: RequesterProfile, today: Optional[date] = None) -> str:
    """Render the requester profile block shared by every prompt."""
    return COMPANY_TEMPLATE.format(
        company_name=profile.company_name,
        purpose=profile.purpose_text or "not provided",
        entity_type=profile.entity_type.value,
        founded_year=profile.founded_year,
        age=profile.company_age(today),
        employees=profile.employee_band.value,
        revenue=profile.revenue_band.value,
        region=profile.region or "not provided",
        urgency=profile.urgency.value,
        categories=", ".join(profile.target_categories) or "any",
    )


def build_item_prompt(
    candidate: ProgramCandidate,
    profile: RequesterProfile,
    match_score: float,
    today: Optional[date] = None,
) -> str:
    """Build the user prompt for one program judgment."""
    return ITEM_PROMPT_TEMPLATE.format(
        company=format_company(profile, today),
        title=candidate.title,
        description=candidate.description or "not provided",
        category=candidate.category or "unknown",
        provider_name=candidate.provider.name,
        provider_type=candidate.provider.type,
        amount_min=_format_amount(candidate.amount_min),
        amount_max=_format_amount(candidate.amount_max),
        support_rate=f"{round(candidate.support_rate * 100)}%" if candidate.support_rate else "unknown",
        region=candidate.region or "nationwide",
        deadline=candidate.deadline.date().isoformat() if candidate.deadline else "rolling",
        match_score=match_score,
    )


def build_corpus_query(profile: RequesterProfile, today: Optional[date] = None) -> str:
    """Build the corpus search message for the assistant."""
    return CORPUS_SEARCH_TEMPLATE.format(company=format_company(profile, today))
