"""OpenAI adapter for the reasoning service.

Two capabilities:
- ``search_corpus``: ask the assistant bound to the indexed program corpus to
  retrieve and judge the best programs for a profile (thread, run, poll).
- ``judge_candidate``: one forced function-call completion per program.

Both are bounded by ``asyncio.wait_for`` and raise ``ReasoningServiceError``
subclasses; callers decide how to fall back.
"""

import asyncio
import json
import logging
import re
import time
from datetime import date
from typing import Any, List, Optional

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..models import CorpusSession, ReasoningJudgment, RequesterProfile, ScoredCandidate
from .errors import (
    MalformedJudgmentError,
    ReasoningServiceError,
    ReasoningTimeoutError,
    ReasoningUnavailableError,
)
from .prompts import (
    ANALYZE_MATCHING_TOOL,
    RUN_INSTRUCTIONS,
    SYSTEM_PROMPT,
    build_corpus_query,
    build_item_prompt,
)

logger = logging.getLogger(__name__)

# Transport timeout for every OpenAI request: 10s connect, 60s read
REASONING_TIMEOUT = httpx.Timeout(connect=10.0, read=60.0, write=30.0, pool=10.0)

TRANSIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)

RUN_FAILED_STATUSES = ("failed", "cancelled", "expired")

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def reasoning_retry():
    """Retry decorator for OpenAI calls: 3 attempts, exponential backoff on transient errors."""
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class ReasoningClient:
    """Async client for corpus search and per-item judgments."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Optional[AsyncOpenAI] = None,
        reasoning_model: str = "gpt-4o-mini",
        item_timeout: float = 30.0,
        corpus_search_timeout: float = 150.0,
        run_poll_interval: float = 2.0,
        run_max_wait: float = 120.0,
    ):
        if client is None:
            if not api_key:
                raise ReasoningUnavailableError("OPENAI_API_KEY is not set")
            # Retries are handled by tenacity
            client = AsyncOpenAI(api_key=api_key, timeout=REASONING_TIMEOUT, max_retries=0)

        self._client = client
        self.reasoning_model = reasoning_model
        self.item_timeout = item_timeout
        self.corpus_search_timeout = corpus_search_timeout
        self.run_poll_interval = run_poll_interval
        self.run_max_wait = run_max_wait

    @classmethod
    def from_config(cls, config) -> Optional["ReasoningClient"]:
        """Build from ``Config``; None when no API key is configured."""
        if not config.openai_api_key:
            logger.warning("OPENAI_API_KEY not set, reasoning falls back to local rules")
            return None
        return cls(
            config.openai_api_key,
            reasoning_model=config.reasoning_model,
            item_timeout=config.item_timeout,
            corpus_search_timeout=config.corpus_search_timeout,
            run_poll_interval=config.run_poll_interval,
            run_max_wait=config.run_max_wait,
        )

    @property
    def openai(self) -> AsyncOpenAI:
        """Underlying SDK client (shared with the corpus indexer)."""
        return self._client

    # ------------------------------------------------------------------
    # Per-item judgments
    # ------------------------------------------------------------------

    async def judge_candidate(
        self,
        candidate: ScoredCandidate,
        profile: RequesterProfile,
        today: Optional[date] = None,
    ) -> ReasoningJudgment:
        """Judge one program for one requester.

        Raises:
            ReasoningTimeoutError: If the call exceeds ``item_timeout``
            MalformedJudgmentError: If no usable function call comes back
            ReasoningServiceError: On any other API failure
        """
        start = time.monotonic()
        try:
            judgment = await asyncio.wait_for(
                self._judge(candidate, profile, today), timeout=self.item_timeout
            )
        except asyncio.TimeoutError as exc:
            raise ReasoningTimeoutError(
                f"Judgment for {candidate.id} exceeded {self.item_timeout:.0f}s"
            ) from exc
        except openai.OpenAIError as exc:
            raise ReasoningServiceError(f"Judgment for {candidate.id} failed: {exc}") from exc

        logger.debug(
            "judge_candidate program=%s score=%.2f confidence=%.2f duration_ms=%.0f",
            candidate.id,
            judgment.score,
            judgment.confidence,
            (time.monotonic() - start) * 1000,
        )
        return judgment

    async def _judge(
        self, candidate: ScoredCandidate, profile: RequesterProfile, today: Optional[date]
    ) -> ReasoningJudgment:
        prompt = build_item_prompt(candidate.program, profile, candidate.match_score, today)
        completion = await self._create_completion(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
        )
        return self.parse_function_call(completion, candidate.id)

    @reasoning_retry()
    async def _create_completion(self, messages: List[dict]) -> Any:
        return await self._client.chat.completions.create(
            model=self.reasoning_model,
            messages=messages,
            tools=[ANALYZE_MATCHING_TOOL],
            tool_choice={"type": "function", "function": {"name": "analyze_matching"}},
            temperature=0.3,
            max_tokens=1000,
        )

    @staticmethod
    def parse_function_call(completion: Any, program_id: Optional[str] = None) -> ReasoningJudgment:
        """Extract the ``analyze_matching`` arguments from a chat completion."""
        try:
            tool_calls = completion.choices[0].message.tool_calls or []
            arguments = tool_calls[0].function.arguments
            data = json.loads(arguments)
        except (IndexError, AttributeError, TypeError, json.JSONDecodeError) as exc:
            raise MalformedJudgmentError(f"No analyze_matching call in response: {exc}") from exc

        if not isinstance(data, dict):
            raise MalformedJudgmentError("analyze_matching arguments are not an object")

        try:
            return ReasoningJudgment(
                program_id=program_id,
                score=data.get("match_score"),
                reasons=data.get("match_reasons") or [],
                # Function calls that omit confidence are trusted at 0.8
                confidence=data.get("confidence", 0.8),
            )
        except ValidationError as exc:
            raise MalformedJudgmentError(f"Invalid analyze_matching arguments: {exc}") from exc

    # ------------------------------------------------------------------
    # Corpus search
    # ------------------------------------------------------------------

    async def search_corpus(
        self,
        profile: RequesterProfile,
        session: CorpusSession,
        today: Optional[date] = None,
    ) -> List[ReasoningJudgment]:
        """Let the corpus-bound assistant retrieve and judge programs.

        Raises:
            ReasoningTimeoutError: If the run or the whole search exceeds its bound
            MalformedJudgmentError: If the answer holds no JSON array of judgments
            ReasoningServiceError: If the run fails or the API errors
        """
        try:
            return await asyncio.wait_for(
                self._search_corpus(profile, session, today), timeout=self.corpus_search_timeout
            )
        except asyncio.TimeoutError as exc:
            raise ReasoningTimeoutError(
                f"Corpus search exceeded {self.corpus_search_timeout:.0f}s"
            ) from exc
        except openai.OpenAIError as exc:
            raise ReasoningServiceError(f"Corpus search failed: {exc}") from exc

    async def _search_corpus(
        self, profile: RequesterProfile, session: CorpusSession, today: Optional[date]
    ) -> List[ReasoningJudgment]:
        threads = self._client.beta.threads

        thread = await threads.create()
        await threads.messages.create(thread.id, role="user", content=build_corpus_query(profile, today))
        run = await threads.runs.create(
            thread_id=thread.id,
            assistant_id=session.assistant_id,
            instructions=RUN_INSTRUCTIONS,
        )
        logger.info("Corpus search run started: thread=%s run=%s", thread.id, run.id)

        await self.wait_for_run(thread.id, run.id)

        messages = await threads.messages.list(thread.id)
        reply = next((m for m in messages.data if m.role == "assistant"), None)
        if reply is None:
            raise MalformedJudgmentError("Assistant returned no reply")

        judgments = self.parse_judgments(self._message_text(reply))
        logger.info("Corpus search returned %d judgments", len(judgments))
        return judgments

    async def wait_for_run(self, thread_id: str, run_id: str) -> Any:
        """Poll a run every ``run_poll_interval`` until it completes."""
        deadline = time.monotonic() + self.run_max_wait

        while time.monotonic() < deadline:
            run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
            logger.debug("Run %s status=%s", run_id, run.status)

            if run.status == "completed":
                return run

            if run.status in RUN_FAILED_STATUSES:
                error = getattr(run, "last_error", None)
                message = getattr(error, "message", None) or "unknown error"
                raise ReasoningServiceError(f"Run {run_id} {run.status}: {message}")

            await asyncio.sleep(self.run_poll_interval)

        raise ReasoningTimeoutError(f"Run {run_id} did not complete within {self.run_max_wait:.0f}s")

    @staticmethod
    def _message_text(message: Any) -> str:
        try:
            return message.content[0].text.value or ""
        except (IndexError, AttributeError):
            return ""

    @staticmethod
    def parse_judgments(text: str) -> List[ReasoningJudgment]:
        """Parse the first JSON array in the assistant's answer.

        Accepts both camelCase (``matchScore``) and snake_case keys; missing
        score and confidence default to 0.5 and 0.7. Items that are not objects
        or carry non-numeric values are skipped.
        """
        match = _JSON_ARRAY.search(text or "")
        if not match:
            raise MalformedJudgmentError("No JSON array in assistant reply")

        try:
            items = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise MalformedJudgmentError(f"Invalid JSON in assistant reply: {exc}") from exc

        if not isinstance(items, list):
            raise MalformedJudgmentError("Assistant reply is not a JSON array")

        judgments = []
        for item in items:
            if not isinstance(item, dict):
                continue
            program_id = item.get("id") or item.get("programId") or item.get("program_id")
            try:
                judgment = ReasoningJudgment(
                    program_id=str(program_id) if program_id is not None else None,
                    score=item.get("matchScore", item.get("match_score")),
                    reasons=item.get("matchReasons", item.get("match_reasons")) or [],
                    confidence=item.get("confidence"),
                )
            except ValidationError as exc:
                logger.warning("Skipping malformed judgment for %s: %s", program_id, exc.errors()[0]["msg"])
                continue
            judgments.append(judgment)
        return judgments
