"""Entry point: one-shot matching, one-shot indexing, or the corpus refresh scheduler.

Usage:
    python -m program_matching.main --match request.json [--programs programs.json]
    python -m program_matching.main --index-once
    python -m program_matching.main            # daily corpus refresh (APScheduler)
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config, load_lexicon
from .corpus import CorpusIndexer
from .database import InMemoryProgramRepository, ProgramRepository, SupabaseProgramRepository
from .models import CorpusSession
from .orchestrator import MatchingOrchestrator
from .reasoner import Reasoner, ReasoningClient
from .scorer import load_weights

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def build_repository(config: Config, programs_path: Optional[str] = None) -> ProgramRepository:
    """Supabase by default; a JSON fixture file when ``programs_path`` is given."""
    lexicon = load_lexicon(config.lexicon_path)
    if programs_path:
        return InMemoryProgramRepository.from_json(programs_path, lexicon)
    return SupabaseProgramRepository(config.supabase_url, config.supabase_key, lexicon=lexicon)


def build_orchestrator(config: Config, repository: ProgramRepository) -> MatchingOrchestrator:
    lexicon = load_lexicon(config.lexicon_path)
    weights = load_weights(config.weights_path)
    reasoner = Reasoner.from_config(config, lexicon)
    return MatchingOrchestrator.build(repository, reasoner, weights=weights, lexicon=lexicon)


async def run_match(request_path: str, programs_path: Optional[str] = None) -> dict:
    """Match the request stored in ``request_path`` and print the response JSON."""
    config = load_config()
    logging.getLogger().setLevel(config.log_level)

    with open(request_path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    orchestrator = build_orchestrator(config, build_repository(config, programs_path))
    response = await orchestrator.match(payload)

    output = response.to_payload()
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return output


async def refresh_corpus(indexer: CorpusIndexer, reasoner: Reasoner) -> Optional[CorpusSession]:
    """Rebuild the corpus session and hand it to the reasoner.

    On failure the reasoner keeps its current session.
    """
    logger.info("=" * 60)
    logger.info("Starting corpus refresh")
    try:
        session = await indexer.build_session(previous=reasoner.session)
    except Exception as e:
        logger.error(f"Corpus refresh failed, keeping current session: {e}", exc_info=True)
        return None

    reasoner.reinitialize(session)
    logger.info("Corpus refresh complete")
    return session


async def run_index_once() -> CorpusSession:
    """Build the corpus session once and print its handles."""
    config = load_config()
    logging.getLogger().setLevel(config.log_level)

    client = ReasoningClient.from_config(config)
    if client is None:
        raise SystemExit("OPENAI_API_KEY is required to index the program corpus")

    indexer = CorpusIndexer.from_config(config, build_repository(config), client)
    previous = None
    if config.assistant_id and config.vector_store_id:
        previous = CorpusSession(vector_store_id=config.vector_store_id, assistant_id=config.assistant_id)

    session = await indexer.build_session(previous=previous)
    print(f"VECTOR_STORE_ID={session.vector_store_id}")
    print(f"ASSISTANT_ID={session.assistant_id}")
    return session


async def serve() -> None:
    """Run the daily corpus refresh until interrupted."""
    config = load_config()
    logging.getLogger().setLevel(config.log_level)

    reasoner = Reasoner.from_config(config, load_lexicon(config.lexicon_path))
    if reasoner.client is None:
        raise SystemExit("OPENAI_API_KEY is required for the corpus refresh scheduler")

    indexer = CorpusIndexer.from_config(config, build_repository(config), reasoner.client)

    logger.info("Initializing corpus refresh scheduler")
    logger.info(f"Daily refresh at {config.corpus_refresh_hour:02d}:00")

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        refresh_corpus,
        trigger=CronTrigger(hour=config.corpus_refresh_hour, minute=0),
        args=[indexer, reasoner],
        id="refresh_corpus",
        name="Rebuild the program corpus vector store",
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
    )
    scheduler.start()
    logger.info("Scheduler started")

    if reasoner.session is None:
        logger.info("No corpus session configured, indexing now...")
        await refresh_corpus(indexer, reasoner)

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown()
        logger.info("Scheduler stopped")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Support program matching")
    parser.add_argument("--match", metavar="FILE", help="Matching request JSON to run once")
    parser.add_argument("--programs", metavar="FILE", help="Program fixture JSON (instead of Supabase)")
    parser.add_argument("--index-once", action="store_true", help="Build the corpus session once and exit")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    if args.match:
        asyncio.run(run_match(args.match, args.programs))
    elif args.index_once:
        asyncio.run(run_index_once())
    else:
        try:
            asyncio.run(serve())
        except KeyboardInterrupt:
            logger.info("Interrupted")


if __name__ == "__main__":
    main()
