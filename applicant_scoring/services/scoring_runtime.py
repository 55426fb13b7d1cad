"""
Scoring runtime - owns every long-lived scoring component.

Constructs the database pool, repositories, text extractor, evaluator
client, orchestrator, coalescer and backfill scanner in one place and
tears them down in reverse order. Request handlers and CLI commands talk
to the runtime instead of module-level singletons.

Usage:
    async with ScoringRuntime() as runtime:
        result = await runtime.generate_or_fetch(42)
        runtime.enqueue(43)
"""

import structlog

from applicant_scoring.candidates.extraction import (
    HttpTextExtractor,
    NullTextExtractor,
    TextExtractor,
)
from applicant_scoring.candidates.repository import CandidateRepository
from applicant_scoring.scoring.backfill import BackfillScanner
from applicant_scoring.scoring.coalescer import ScoreCoalescer
from applicant_scoring.scoring.config import ScoringConfig
from applicant_scoring.scoring.context import ContextBuilder
from applicant_scoring.scoring.llm_client import EvaluatorClient
from applicant_scoring.scoring.repository import ScoreRepository
from applicant_scoring.scoring.retry import RetryController
from applicant_scoring.scoring.schemas import GenerationResult, Score
from applicant_scoring.scoring.service import ScoringService
from applicant_scoring.storage.database import Database

logger = structlog.get_logger(__name__)


class ScoringRuntime:
    """
    Explicit construction and teardown for the scoring pipeline.

    Args:
        config: Scoring configuration (defaults to SCORING_* environment).
        database: Database pool (created from settings if omitted).
        extractor: Document text extractor. Defaults to an HTTP extractor
            when ``config.extraction_url`` is set, otherwise no document text.
        evaluator: Evaluator client (built from config if omitted).
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        database: Database | None = None,
        extractor: TextExtractor | None = None,
        evaluator: EvaluatorClient | None = None,
    ):
        self.config = config or ScoringConfig()
        self.database = database or Database()

        if extractor is None:
            if self.config.extraction_url:
                extractor = HttpTextExtractor(
                    self.config.extraction_url,
                    timeout=self.config.extraction_timeout,
                )
            else:
                extractor = NullTextExtractor()
        self.extractor = extractor

        self.candidates = CandidateRepository(self.database)
        self.scores = ScoreRepository(self.database)
        self.evaluator = evaluator or EvaluatorClient(self.config)
        self.retry = RetryController.from_config(self.config)
        self.service = ScoringService(
            scores=self.scores,
            context_builder=ContextBuilder(
                self.candidates,
                self.extractor,
                max_chars=self.config.context_max_chars,
            ),
            evaluator=self.evaluator,
            retry=self.retry,
        )
        self.coalescer = ScoreCoalescer(
            self.service,
            worker_count=self.config.worker_count,
            queue_max_size=self.config.queue_max_size,
        )
        self.backfill = BackfillScanner(
            self.candidates,
            self.coalescer,
            initial_delay=self.config.backfill_initial_delay,
            interval=self.config.backfill_interval,
            batch_size=self.config.backfill_batch_size,
            pacing=self.config.backfill_pacing,
        )

        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self, background: bool = True) -> None:
        """
        Connect storage and start background workers.

        Args:
            background: Start the coalescer workers, and the backfill
                scanner when enabled. One-shot commands pass False.
        """
        if self._started:
            return

        await self.database.connect()
        if background:
            await self.coalescer.start()
            if self.config.backfill_enabled:
                self.backfill.start()

        self._started = True
        logger.info(
            "Scoring runtime started",
            model=self.config.openai_model,
            evaluator_configured=self.config.configured,
            backoff=self.retry.backoff.schedule(self.retry.max_attempts),
            background=background,
        )

    async def stop(self) -> None:
        """Stop background work and release connections."""
        if not self._started:
            return

        await self.backfill.stop()
        await self.coalescer.stop()
        await self.evaluator.close()
        if isinstance(self.extractor, HttpTextExtractor):
            await self.extractor.close()
        await self.database.close()

        self._started = False
        logger.info("Scoring runtime stopped")

    async def __aenter__(self) -> "ScoringRuntime":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def get_latest_score(self, candidate_id: int) -> Score | None:
        return await self.service.get_latest_score(candidate_id)

    async def generate_or_fetch(
        self, candidate_id: int, force: bool = False
    ) -> GenerationResult:
        return await self.service.generate_or_fetch(candidate_id, force=force)

    def enqueue(self, candidate_id: int) -> bool:
        """Fire-and-forget background generation (coalesced per candidate)."""
        return self.coalescer.enqueue(candidate_id)
