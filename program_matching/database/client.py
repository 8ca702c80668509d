"""Supabase-backed program repository."""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from ..config.lexicon import DEFAULT_LEXICON, MatchingLexicon
from ..models import ProgramCandidate, Provider
from .base import ProgramQuery, ProgramRepository, matches_query

logger = logging.getLogger(__name__)

PROGRAMS_TABLE = "support_programs"
PROGRAM_COLUMNS = "*, provider:providers(name, type)"


class SupabaseProgramRepository(ProgramRepository):
    """Reads support programs (joined with their provider) from Supabase."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
        lexicon: MatchingLexicon = DEFAULT_LEXICON,
    ) -> None:
        """Initialize Supabase client from explicit args or env vars.

        Args:
            url: Supabase project URL (falls back to SUPABASE_URL env var).
            key: Supabase anon/service key (falls back to SUPABASE_KEY env var).
            client: Pre-built client (tests).
            lexicon: Category aliases and region markers used by the predicates.
        """
        self.lexicon = lexicon
        if client is not None:
            self._client = client
        else:
            self._url = url or os.environ["SUPABASE_URL"]
            self._key = key or os.environ["SUPABASE_KEY"]
            self._client = create_client(self._url, self._key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_programs(self, query: ProgramQuery) -> List[ProgramCandidate]:
        """Fetch programs matching ``query``.

        Category set and deadline bounds are pushed down to PostgREST; region
        and target substring predicates are applied to the returned rows.
        """
        now = query.now or datetime.now(timezone.utc)
        request = self._client.table(PROGRAMS_TABLE).select(PROGRAM_COLUMNS)

        if query.categories:
            request = request.in_("category", self.lexicon.category_variants(query.categories))

        deadline_clause = self._deadline_clause(query, now)
        if deadline_clause:
            request = request.or_(deadline_clause)

        response = request.order("deadline", desc=False, nullsfirst=False).execute()
        programs = [self._to_candidate(row) for row in response.data]
        filtered = [p for p in programs if matches_query(p, query, now, self.lexicon)]
        logger.info("Repository query: %d rows fetched, %d after predicates", len(programs), len(filtered))
        return filtered

    def all_programs(self) -> List[ProgramCandidate]:
        response = self._client.table(PROGRAMS_TABLE).select(PROGRAM_COLUMNS).execute()
        return [self._to_candidate(row) for row in response.data]

    def count_programs(self) -> int:
        response = (
            self._client.table(PROGRAMS_TABLE)
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
        return response.count or 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _deadline_clause(query: ProgramQuery, now: datetime) -> Optional[str]:
        bounds = []
        if query.active_only:
            bounds.append(f"deadline.gte.{now.isoformat()}")
        if query.deadline_before:
            bounds.append(f"deadline.lte.{query.deadline_before.isoformat()}")
        if not bounds:
            return None
        return f"deadline.is.null,and({','.join(bounds)})"

    @staticmethod
    def _to_candidate(row: Dict[str, Any]) -> ProgramCandidate:
        provider = row.get("provider") or {}
        return ProgramCandidate(
            id=str(row["id"]),
            title=row.get("title") or "Untitled",
            description=row.get("description"),
            category=row.get("category"),
            target=row.get("target"),
            region=row.get("region"),
            deadline=row.get("deadline"),
            amount_min=row.get("amount_min"),
            amount_max=row.get("amount_max"),
            support_rate=row.get("support_rate"),
            provider=Provider(
                name=provider.get("name") or "Unknown",
                type=provider.get("type") or "Other",
            ),
            tags=row.get("tags"),
        )
