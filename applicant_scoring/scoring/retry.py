"""
Bounded retry with linear backoff for evaluator calls.

Only errors whose ``retryable`` flag is set (TransientCallFailure,
EmptyResponse, MalformedOutput) are retried. Anything else propagates
on the attempt that raised it. When attempts run out, the last error is
re-raised with ``attempt = max_attempts`` and ``retryable = False``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from applicant_scoring.observability.metrics import get_metrics
from applicant_scoring.scoring.config import MAX_ATTEMPTS, MIN_ATTEMPTS, ScoringConfig
from applicant_scoring.scoring.errors import ScoringError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LinearBackoff:
    """
    Linear backoff without jitter.

    Delay before retry n (n = the attempt that just failed) is
    ``min(n * step, max_delay)``, so delays never decrease.

    Usage:
        backoff = LinearBackoff(step=0.75, max_delay=5.0)
        backoff.delay_for(1)  # 0.75
        backoff.delay_for(2)  # 1.5
    """

    def __init__(self, step: float = 0.75, max_delay: float = 5.0):
        self.step = step
        self.max_delay = max_delay

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after ``attempt`` fails, before the next one."""
        return min(attempt * self.step, self.max_delay)

    def schedule(self, max_attempts: int) -> list[float]:
        """All delays a full run of ``max_attempts`` would sleep for."""
        return [self.delay_for(attempt) for attempt in range(1, max_attempts)]


@dataclass
class GenerationAttempt:
    """Retry state for one generation.

    Attributes:
        attempt: 1-based number of the current attempt.
        max_attempts: Configured bound.
        delay: Backoff applied before the next attempt, in seconds.
        retryable: Classification of the most recent failure.
    """

    attempt: int
    max_attempts: int
    delay: float = 0.0
    retryable: bool | None = None


class RetryController:
    """Runs an async callable under the retry policy.

    Args:
        max_attempts: Total attempts including the first, clamped to [1, 5].
        backoff: Delay calculator.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: LinearBackoff | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max(MIN_ATTEMPTS, min(MAX_ATTEMPTS, max_attempts))
        self.backoff = backoff or LinearBackoff()
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: ScoringConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "RetryController":
        return cls(
            max_attempts=config.max_attempts,
            backoff=LinearBackoff(
                step=config.backoff_step_seconds,
                max_delay=config.backoff_cap_seconds,
            ),
            sleep=sleep,
        )

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Call ``fn`` until it succeeds, fails terminally, or attempts run out.

        Raises:
            ScoringError: The terminal error, annotated with attempt metadata.
            Exception: Non-scoring errors propagate unchanged on first occurrence.
        """
        state = GenerationAttempt(attempt=0, max_attempts=self.max_attempts)
        metrics = get_metrics()

        for attempt in range(1, self.max_attempts + 1):
            state.attempt = attempt
            try:
                return await fn(*args, **kwargs)
            except ScoringError as e:
                state.retryable = e.retryable
                e.attempt = attempt
                e.max_attempts = self.max_attempts
                if not e.retryable:
                    raise
                if attempt >= self.max_attempts:
                    e.retryable = False
                    logger.warning(
                        "Giving up after %d attempts: %s", self.max_attempts, e
                    )
                    raise

                state.delay = self.backoff.delay_for(attempt)
                metrics.record_retry(e.code)
                logger.info(
                    "Attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt,
                    self.max_attempts,
                    e.code,
                    state.delay,
                )
                await self._sleep(state.delay)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("retry loop exited without a result")
