"""Pytest fixtures for scoring tests."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from applicant_scoring.scoring.retry import LinearBackoff, RetryController
from applicant_scoring.scoring.schemas import ScoringContext, StructuredEvaluation
from applicant_scoring.scoring.service import ScoringService


class ScriptedEvaluator:
    """Evaluator double that plays back a list of outcomes.

    Each entry is either a StructuredEvaluation to return or an exception
    to raise. The last entry repeats once the script runs out.
    """

    def __init__(self, *outcomes: Any, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[ScoringContext] = []
        self.delay = delay

    async def invoke(self, context: ScoringContext) -> StructuredEvaluation:
        self.calls.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        pass


class StaticContextBuilder:
    """Context builder double; unknown ids return None."""

    def __init__(self, *contexts: ScoringContext) -> None:
        self.contexts = {c.candidate_id: c for c in contexts}
        self.calls: list[int] = []

    async def build(self, candidate_id: int) -> ScoringContext | None:
        self.calls.append(candidate_id)
        return self.contexts.get(candidate_id)


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def retry(no_sleep: AsyncMock) -> RetryController:
    return RetryController(
        max_attempts=3,
        backoff=LinearBackoff(step=0.75, max_delay=5.0),
        sleep=no_sleep,
    )


@pytest.fixture
def context_builder(sample_context: ScoringContext) -> StaticContextBuilder:
    return StaticContextBuilder(sample_context)


@pytest.fixture
def make_service(score_repo, context_builder, retry):
    """Factory building a ScoringService around a scripted evaluator."""

    def _make(evaluator: ScriptedEvaluator, clock=None) -> ScoringService:
        kwargs = {"clock": clock} if clock is not None else {}
        return ScoringService(
            scores=score_repo,
            context_builder=context_builder,
            evaluator=evaluator,
            retry=retry,
            **kwargs,
        )

    return _make


def make_completion(content: str | None) -> MagicMock:
    """Chat completion response with one choice."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response
