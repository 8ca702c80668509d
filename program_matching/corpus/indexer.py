"""Corpus indexing for retrieval-augmented reasoning.

Exports active programs to a JSON document, uploads it to an OpenAI vector
store, waits for indexing to finish and binds an assistant to the store. The
resulting ``CorpusSession`` is what the Reasoner's corpus search tier reads.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from ..database.base import ProgramQuery, ProgramRepository
from ..models import CorpusSession, ProgramCandidate
from ..reasoner.client import ReasoningClient, reasoning_retry
from ..reasoner.errors import CorpusNotReadyError
from ..reasoner.prompts import ASSISTANT_INSTRUCTIONS, ASSISTANT_NAME

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "support-programs-"
VECTOR_STORE_NAME = "Government support programs"

CATEGORY_NAMES = {
    "01": "finance",
    "02": "technology",
    "03": "human resources",
    "04": "export",
    "05": "domestic market",
    "06": "startup",
    "07": "management",
    "09": "other",
}


@dataclass
class CorpusExport:
    path: Path
    total_programs: int
    active_programs: int


def format_amount_range(amount_min: Optional[float], amount_max: Optional[float]) -> str:
    if not amount_min and not amount_max:
        return "unknown"
    if not amount_min:
        return f"up to {amount_max:,.0f} KRW"
    if not amount_max:
        return f"from {amount_min:,.0f} KRW"
    if amount_min == amount_max:
        return f"{amount_min:,.0f} KRW"
    return f"{amount_min:,.0f} KRW ~ {amount_max:,.0f} KRW"


def to_corpus_document(program: ProgramCandidate, now: datetime) -> dict:
    """Flatten one program into the shape indexed for retrieval."""
    category_name = CATEGORY_NAMES.get(program.category or "", program.category or "uncategorized")
    searchable = [
        program.title,
        program.description,
        category_name,
        program.provider.name,
        program.region,
        program.target,
        *program.tags,
    ]
    return {
        "id": program.id,
        "title": program.title,
        "description": program.description,
        "category": category_name,
        "provider": f"{program.provider.name} ({program.provider.type})",
        "amount_range": format_amount_range(program.amount_min, program.amount_max),
        "support_rate": f"{round(program.support_rate * 100)}%" if program.support_rate else None,
        "region": program.region or "nationwide",
        "target": program.target,
        "deadline": program.deadline.date().isoformat() if program.deadline else "rolling",
        "tags": ", ".join(program.tags),
        "searchable_text": " ".join(s for s in searchable if s),
        "metadata": {
            "category_id": program.category,
            "is_active": program.deadline is None or program.deadline >= now,
            "exported_at": now.isoformat(),
        },
    }


class CorpusIndexer:
    """Builds and refreshes the corpus session used by corpus search."""

    def __init__(
        self,
        repository: ProgramRepository,
        client: ReasoningClient,
        export_dir: str = "uploads",
        assistant_model: str = "gpt-4o",
        poll_interval: float = 5.0,
        max_wait: float = 300.0,
    ):
        self.repository = repository
        self.client = client
        self.export_dir = Path(export_dir)
        self.assistant_model = assistant_model
        self.poll_interval = poll_interval
        self.max_wait = max_wait

    @classmethod
    def from_config(cls, config, repository: ProgramRepository, client: ReasoningClient) -> "CorpusIndexer":
        return cls(
            repository,
            client,
            export_dir=config.corpus_export_dir,
            assistant_model=config.assistant_model,
            poll_interval=config.corpus_poll_interval,
            max_wait=config.corpus_max_wait,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_corpus(self, now: Optional[datetime] = None) -> CorpusExport:
        """Write every active program to ``support-programs-<date>.json``."""
        now = now or datetime.now(timezone.utc)
        self.export_dir.mkdir(parents=True, exist_ok=True)

        programs = self.repository.find_programs(ProgramQuery(active_only=True, now=now))
        total = self.repository.count_programs()

        path = self.export_dir / f"{EXPORT_PREFIX}{now.strftime('%Y-%m-%d')}.json"
        documents = [to_corpus_document(p, now) for p in programs]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(documents, f, ensure_ascii=False, indent=2)

        logger.info("Corpus export: %d of %d programs active, written to %s", len(programs), total, path)
        return CorpusExport(path=path, total_programs=total, active_programs=len(programs))

    def cleanup_exports(self, keep: int = 3) -> List[Path]:
        """Delete all but the newest ``keep`` export files. Returns deleted paths."""
        if not self.export_dir.exists():
            return []

        exports = sorted(self.export_dir.glob(f"{EXPORT_PREFIX}*.json"), reverse=True)
        removed = []
        for path in exports[keep:]:
            try:
                path.unlink()
                removed.append(path)
                logger.info("Removed old corpus export %s", path.name)
            except OSError as exc:
                logger.warning("Could not remove %s: %s", path, exc)
        return removed

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def build_session(
        self,
        previous: Optional[CorpusSession] = None,
        now: Optional[datetime] = None,
    ) -> CorpusSession:
        """Export, upload, wait for indexing and bind the assistant.

        An existing assistant (from ``previous``) is updated in place rather
        than replaced.

        Raises:
            CorpusNotReadyError: If the vector store expires or never completes
        """
        start = time.monotonic()
        export = self.export_corpus(now)

        file_id = await self._upload(export.path)
        vector_store_id = await self._create_vector_store(file_id)
        await self.wait_until_ready(vector_store_id)

        assistant_id = await self._bind_assistant(
            vector_store_id, previous.assistant_id if previous else None
        )
        self.cleanup_exports()

        logger.info(
            "corpus_index result=success programs=%d vector_store=%s assistant=%s duration_ms=%.0f",
            export.active_programs,
            vector_store_id,
            assistant_id,
            (time.monotonic() - start) * 1000,
        )
        return CorpusSession(
            vector_store_id=vector_store_id,
            assistant_id=assistant_id,
            file_id=file_id,
        )

    @reasoning_retry()
    async def _upload(self, path: Path) -> str:
        with open(path, "rb") as f:
            uploaded = await self.client.openai.files.create(file=f, purpose="assistants")
        logger.info("Uploaded corpus file %s as %s", path.name, uploaded.id)
        return uploaded.id

    @reasoning_retry()
    async def _create_vector_store(self, file_id: str) -> str:
        store = await self.client.openai.vector_stores.create(
            name=VECTOR_STORE_NAME,
            file_ids=[file_id],
            metadata={
                "type": "support_programs",
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("Created vector store %s", store.id)
        return store.id

    async def wait_until_ready(self, vector_store_id: str) -> Any:
        """Poll the vector store every ``poll_interval`` until indexing completes."""
        deadline = time.monotonic() + self.max_wait

        while time.monotonic() < deadline:
            store = await self.client.openai.vector_stores.retrieve(vector_store_id)
            logger.debug("Vector store %s status=%s files=%s", vector_store_id, store.status, store.file_counts)

            if store.status == "completed":
                return store

            if store.status == "expired":
                raise CorpusNotReadyError(f"Vector store {vector_store_id} expired")

            await asyncio.sleep(self.poll_interval)

        raise CorpusNotReadyError(
            f"Vector store {vector_store_id} not ready within {self.max_wait:.0f}s"
        )

    @reasoning_retry()
    async def _bind_assistant(self, vector_store_id: str, assistant_id: Optional[str]) -> str:
        settings = {
            "name": ASSISTANT_NAME,
            "instructions": ASSISTANT_INSTRUCTIONS,
            "model": self.assistant_model,
            "tools": [{"type": "file_search"}],
            "tool_resources": {"file_search": {"vector_store_ids": [vector_store_id]}},
        }
        assistants = self.client.openai.beta.assistants

        if assistant_id:
            assistant = await assistants.update(assistant_id, **settings)
            logger.info("Updated assistant %s", assistant.id)
        else:
            assistant = await assistants.create(**settings)
            logger.info("Created assistant %s", assistant.id)
        return assistant.id
