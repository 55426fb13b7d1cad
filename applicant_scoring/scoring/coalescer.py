"""
Background score generation with per-candidate coalescing.

At most one background generation per candidate is queued or running at
any moment. Duplicate enqueues while a candidate is in flight are no-ops,
and the candidate becomes eligible again as soon as its generation
finishes, whether it succeeded or failed.

Work is executed by a fixed pool of worker tasks reading a bounded
asyncio.Queue, so a large backfill cannot spawn unbounded concurrent
evaluator calls. When the queue is full the enqueue is dropped and the
candidate is released for a later sweep.
"""

import asyncio
from typing import Protocol

import structlog

from applicant_scoring.observability.logging import bind_context
from applicant_scoring.observability.metrics import get_metrics
from applicant_scoring.scoring.schemas import GenerationResult

logger = structlog.get_logger(__name__)


class ScoreGenerator(Protocol):
    async def generate_or_fetch(
        self, candidate_id: int, force: bool = False
    ) -> GenerationResult: ...


class ScoreCoalescer:
    """
    Fire-and-forget scoring queue keyed by candidate id.

    Usage:
        coalescer = ScoreCoalescer(service, worker_count=2)
        await coalescer.start()
        coalescer.enqueue(42)   # True
        coalescer.enqueue(42)   # False, already in flight
        await coalescer.drain()
        await coalescer.stop()
    """

    def __init__(
        self,
        generator: ScoreGenerator,
        worker_count: int = 2,
        queue_max_size: int = 500,
    ):
        self._generator = generator
        self._worker_count = max(1, worker_count)
        self._queue: asyncio.Queue[int] = asyncio.Queue(maxsize=queue_max_size)
        self._in_flight: set[int] = set()
        self._workers: list[asyncio.Task] = []
        self._running = False

    @property
    def in_flight(self) -> frozenset[int]:
        """Candidates currently queued or being scored."""
        return frozenset(self._in_flight)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Spawn the worker tasks. Calling twice is a no-op."""
        if self._running:
            return
        self._running = True
        self._workers = [
            asyncio.create_task(self._work(n), name=f"score-coalescer-{n}")
            for n in range(self._worker_count)
        ]
        logger.info("Score coalescer started", workers=self._worker_count)

    async def stop(self) -> None:
        """Cancel workers. Queued candidates are released, not scored."""
        if not self._running:
            return
        self._running = False

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        while not self._queue.empty():
            candidate_id = self._queue.get_nowait()
            self._in_flight.discard(candidate_id)
            self._queue.task_done()
        get_metrics().set_in_flight(len(self._in_flight))
        logger.info("Score coalescer stopped")

    def enqueue(self, candidate_id: int) -> bool:
        """
        Schedule a background generation unless one is already pending.

        Returns immediately; failures of the generation are logged by the
        worker and never reach the caller.

        Returns:
            True if the candidate was queued, False if coalesced, dropped,
            or no workers are running.
        """
        metrics = get_metrics()
        if not self._running:
            metrics.dropped.inc()
            logger.warning(
                "Scoring workers not running, dropping enqueue",
                candidate_id=candidate_id,
            )
            return False

        if candidate_id in self._in_flight:
            metrics.coalesced.inc()
            logger.debug("Enqueue coalesced", candidate_id=candidate_id)
            return False

        self._in_flight.add(candidate_id)
        try:
            self._queue.put_nowait(candidate_id)
        except asyncio.QueueFull:
            self._in_flight.discard(candidate_id)
            metrics.dropped.inc()
            logger.warning(
                "Scoring queue full, dropping enqueue",
                candidate_id=candidate_id,
                queue_size=self._queue.qsize(),
            )
            return False

        metrics.set_in_flight(len(self._in_flight))
        return True

    async def drain(self) -> None:
        """Wait until every queued candidate has been processed."""
        await self._queue.join()

    async def _work(self, worker_id: int) -> None:
        """Worker loop: one candidate at a time, never raises."""
        bind_context(worker=worker_id)
        while True:
            candidate_id = await self._queue.get()
            try:
                result = await self._generator.generate_or_fetch(candidate_id, force=False)
                logger.debug(
                    "Background generation finished",
                    candidate_id=candidate_id,
                    status=result.status.value,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    "Background generation failed",
                    candidate_id=candidate_id,
                    error=str(e),
                )
            finally:
                self._in_flight.discard(candidate_id)
                self._queue.task_done()
                get_metrics().set_in_flight(len(self._in_flight))
