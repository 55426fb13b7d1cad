"""
Periodic sweep that enqueues candidates with no stored score.

The sweep waits ``initial_delay`` after start, then every ``interval``
asks the candidate store for up to ``batch_size`` unscored candidates and
hands them to the coalescer, sleeping ``pacing`` between enqueues. A
failed sweep is logged and the loop continues.
"""

import asyncio
from typing import Protocol

import structlog

from applicant_scoring.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


class UnscoredSource(Protocol):
    async def find_unscored(self, limit: int = 20) -> list[int]: ...


class Enqueuer(Protocol):
    def enqueue(self, candidate_id: int) -> bool: ...


class BackfillScanner:
    """
    Background task feeding unscored candidates to the coalescer.

    Args:
        candidates: Source of unscored candidate ids.
        coalescer: Receives enqueue calls.
        initial_delay: Seconds before the first sweep.
        interval: Seconds between sweeps.
        batch_size: Candidates per sweep.
        pacing: Seconds between enqueues within a sweep.
    """

    def __init__(
        self,
        candidates: UnscoredSource,
        coalescer: Enqueuer,
        initial_delay: float = 15.0,
        interval: float = 300.0,
        batch_size: int = 20,
        pacing: float = 0.5,
    ):
        self._candidates = candidates
        self._coalescer = coalescer
        self._initial_delay = initial_delay
        self._interval = interval
        self._batch_size = batch_size
        self._pacing = pacing
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop; a no-op while it is already running."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="score-backfill")
        logger.info(
            "Backfill scanner started",
            initial_delay=self._initial_delay,
            interval=self._interval,
            batch_size=self._batch_size,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Backfill scanner stopped")

    async def sweep(self) -> int:
        """Run one sweep.

        Returns:
            Number of candidates accepted by the coalescer.
        """
        metrics = get_metrics()
        candidate_ids = await self._candidates.find_unscored(limit=self._batch_size)

        enqueued = 0
        for index, candidate_id in enumerate(candidate_ids):
            if index and self._pacing > 0:
                await asyncio.sleep(self._pacing)
            if self._coalescer.enqueue(candidate_id):
                enqueued += 1

        metrics.backfill_enqueued.inc(enqueued)
        logger.info("Backfill sweep done", found=len(candidate_ids), enqueued=enqueued)
        return enqueued

    async def _run(self) -> None:
        await asyncio.sleep(self._initial_delay)
        metrics = get_metrics()
        while True:
            try:
                await self.sweep()
                metrics.backfill_sweeps.labels(status="success").inc()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                metrics.backfill_sweeps.labels(status="error").inc()
                logger.warning("Backfill sweep failed", error=str(e))
            await asyncio.sleep(self._interval)
