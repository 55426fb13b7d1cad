"""Generate-or-fetch orchestration for candidate scores.

State flow per call:

    CACHE_CHECK -> HIT -> RETURNED
                -> MISS -> CONTEXT_BUILD -> ATTEMPT(1..max) -> PERSISTED
                                                           -> FAILED

Without ``force`` an existing score is returned and the evaluator is not
called. With ``force`` a new row is written under
``<canonical>-rerun-<epoch ms>`` so earlier versions stay queryable while
the new row becomes the latest.
"""

import time
from collections.abc import Callable

import structlog

from applicant_scoring.observability.metrics import get_metrics
from applicant_scoring.scoring.context import ContextBuilder
from applicant_scoring.scoring.errors import NotFoundError, ScoringError
from applicant_scoring.scoring.llm_client import EvaluatorClient
from applicant_scoring.scoring.repository import ScoreRepository
from applicant_scoring.scoring.retry import RetryController
from applicant_scoring.scoring.schemas import (
    GenerationResult,
    GenerationStatus,
    Score,
    StructuredEvaluation,
)

logger = structlog.get_logger(__name__)

RERUN_MARKER = "-rerun-"


def rerun_version(canonical: str, epoch_ms: int) -> str:
    """Version tag for a forced regeneration."""
    return f"{canonical}{RERUN_MARKER}{epoch_ms}"


class ScoringService:
    """Idempotent entry point for candidate scoring.

    Args:
        scores: Score store.
        context_builder: Builds the evaluator input.
        evaluator: Evaluator client.
        retry: Retry controller wrapping evaluator calls.
        clock: Seconds since the epoch, used for rerun version suffixes.
    """

    def __init__(
        self,
        scores: ScoreRepository,
        context_builder: ContextBuilder,
        evaluator: EvaluatorClient,
        retry: RetryController,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._scores = scores
        self._context_builder = context_builder
        self._evaluator = evaluator
        self._retry = retry
        self._clock = clock

    async def get_latest_score(self, candidate_id: int) -> Score | None:
        """Latest stored score, or None while none exists or storage is down."""
        return await self._scores.get_latest(candidate_id)

    async def generate_or_fetch(
        self,
        candidate_id: int,
        force: bool = False,
    ) -> GenerationResult:
        """Return the cached score or generate one.

        Args:
            candidate_id: Candidate to score.
            force: Always call the evaluator and store a new rerun row.

        Returns:
            GenerationResult with status existing, generated or regenerated.

        Raises:
            NotFoundError: Candidate does not exist.
            TransientCallFailure: Candidate lookup failed (``candidate_lookup_failed``).
            ConfigurationError: Evaluator not configured or credentials rejected.
            TransientCallFailure / MalformedOutput: Attempts exhausted.
        """
        log = logger.bind(candidate_id=candidate_id, force=force)
        metrics = get_metrics()

        if not force:
            existing = await self._scores.get_latest(candidate_id)
            if existing is not None:
                metrics.record_generation(GenerationStatus.EXISTING.value)
                log.debug("Score cache hit", score_id=existing.id, version=existing.version)
                return GenerationResult(score=existing, status=GenerationStatus.EXISTING)

        try:
            context = await self._context_builder.build(candidate_id)
            if context is None:
                raise NotFoundError(f"Candidate {candidate_id} not found")

            evaluation = await self._retry.run(self._evaluator.invoke, context)
        except ScoringError as e:
            metrics.record_generation("failed")
            log.warning("Score generation failed", **e.to_dict())
            raise

        version = evaluation.version
        if force:
            version = rerun_version(version, int(self._clock() * 1000))

        score = await self._persist(candidate_id, evaluation, version)
        status = GenerationStatus.REGENERATED if force else GenerationStatus.GENERATED
        metrics.record_generation(status.value)
        log.info(
            "Score generated",
            status=status.value,
            version=version,
            score_id=score.id,
            overall_score=score.overall_score,
            provenance=evaluation.provenance,
        )
        return GenerationResult(score=score, status=status)

    async def _persist(
        self,
        candidate_id: int,
        evaluation: StructuredEvaluation,
        version: str,
    ) -> Score:
        """Upsert and read back; fall back to an unpersisted score on write failure."""
        row_id = await self._scores.upsert(
            candidate_id,
            evaluation.model,
            version,
            evaluation.score_fields(),
        )
        if row_id is not None:
            stored = await self._scores.get_latest(candidate_id)
            if stored is not None:
                return stored
            logger.warning(
                "Read-back failed after upsert, returning written values",
                candidate_id=candidate_id,
                score_id=row_id,
            )
            return Score.from_evaluation(candidate_id, evaluation, version).model_copy(
                update={"id": row_id}
            )

        logger.warning(
            "Score not persisted, returning in-memory result",
            candidate_id=candidate_id,
            version=version,
        )
        return Score.from_evaluation(candidate_id, evaluation, version)
