"""Tests for ScoreCoalescer."""

import asyncio

import pytest

from applicant_scoring.scoring.coalescer import ScoreCoalescer
from applicant_scoring.scoring.errors import TransientCallFailure
from applicant_scoring.scoring.schemas import (
    GenerationResult,
    GenerationStatus,
    Score,
)


class RecordingGenerator:
    """Counts generate_or_fetch calls; optionally blocks until released."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[int, bool]] = []
        self.release = asyncio.Event()
        self.release.set()
        self.fail = fail

    async def generate_or_fetch(self, candidate_id: int, force: bool = False) -> GenerationResult:
        self.calls.append((candidate_id, force))
        await self.release.wait()
        if self.fail:
            raise TransientCallFailure("503")
        return GenerationResult(
            score=Score(candidate_id=candidate_id, model="gpt-4o-mini", version="v2"),
            status=GenerationStatus.GENERATED,
        )


@pytest.fixture
async def generator():
    return RecordingGenerator()


@pytest.fixture
async def coalescer(generator):
    coalescer = ScoreCoalescer(generator, worker_count=2, queue_max_size=10)
    await coalescer.start()
    yield coalescer
    await coalescer.stop()


class TestScoreCoalescer:
    async def test_concurrent_enqueues_generate_once(self, coalescer, generator) -> None:
        generator.release.clear()

        accepted = [coalescer.enqueue(42) for _ in range(25)]
        await asyncio.sleep(0)
        generator.release.set()
        await coalescer.drain()

        assert accepted.count(True) == 1
        assert generator.calls == [(42, False)]

    async def test_distinct_candidates_all_run(self, coalescer, generator) -> None:
        for candidate_id in (1, 2, 3):
            coalescer.enqueue(candidate_id)
        await coalescer.drain()

        assert sorted(c for c, _ in generator.calls) == [1, 2, 3]

    async def test_candidate_released_after_completion(self, coalescer, generator) -> None:
        coalescer.enqueue(42)
        await coalescer.drain()
        assert 42 not in coalescer.in_flight

        assert coalescer.enqueue(42) is True
        await coalescer.drain()
        assert len(generator.calls) == 2

    async def test_failure_is_swallowed_and_released(self) -> None:
        generator = RecordingGenerator(fail=True)
        coalescer = ScoreCoalescer(generator, worker_count=1)
        await coalescer.start()
        try:
            assert coalescer.enqueue(7) is True
            await coalescer.drain()

            assert coalescer.in_flight == frozenset()
            assert coalescer.enqueue(7) is True
            await coalescer.drain()
        finally:
            await coalescer.stop()

        assert len(generator.calls) == 2

    async def test_full_queue_drops_and_releases(self, generator) -> None:
        generator.release.clear()
        coalescer = ScoreCoalescer(generator, worker_count=1, queue_max_size=2)
        await coalescer.start()
        try:
            # Workers have not run yet, so the queue fills synchronously
            assert coalescer.enqueue(1) is True
            assert coalescer.enqueue(2) is True
            assert coalescer.enqueue(3) is False

            assert coalescer.in_flight == frozenset({1, 2})
        finally:
            await coalescer.stop()

    async def test_enqueue_rejected_without_workers(self, generator) -> None:
        coalescer = ScoreCoalescer(generator, worker_count=1)

        assert coalescer.enqueue(43) is False
        assert coalescer.in_flight == frozenset()

        await coalescer.start()
        try:
            assert coalescer.enqueue(43) is True
            await coalescer.drain()
        finally:
            await coalescer.stop()

        assert generator.calls == [(43, False)]

    async def test_enqueue_rejected_after_stop(self, coalescer) -> None:
        await coalescer.stop()

        assert coalescer.enqueue(5) is False
        assert coalescer.in_flight == frozenset()

    async def test_stop_releases_queued_candidates(self, generator) -> None:
        generator.release.clear()
        coalescer = ScoreCoalescer(generator, worker_count=1)
        await coalescer.start()
        for candidate_id in (1, 2, 3):
            coalescer.enqueue(candidate_id)
        await asyncio.sleep(0)

        await coalescer.stop()

        assert coalescer.in_flight == frozenset()
        assert not coalescer.is_running

    async def test_start_is_idempotent(self, generator) -> None:
        coalescer = ScoreCoalescer(generator, worker_count=3)
        await coalescer.start()
        await coalescer.start()
        try:
            assert len(coalescer._workers) == 3
        finally:
            await coalescer.stop()
