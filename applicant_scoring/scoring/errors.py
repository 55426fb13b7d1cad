"""Failure taxonomy for the scoring pipeline.

Every error carries a stable ``code`` for the HTTP layer plus the retry
metadata the retry controller reads and annotates:

- ConfigurationError: missing/rejected credentials or SDK. Never retried.
- NotFoundError: candidate or context missing. Never retried.
- TransientCallFailure: network/API failure. Retried. Also raised with
  code ``candidate_lookup_failed`` when the candidate store errors.
- EmptyResponse: evaluator answered with no content. Retried as transient.
- MalformedOutput: response unparseable even after repair. Retried.
- PersistenceFailure: storage error; absorbed by the score store.
"""

from typing import Any


class ScoringError(Exception):
    """Base class for scoring pipeline errors."""

    code = "scoring_error"
    retryable = False

    def __init__(
        self,
        detail: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        if code is not None:
            self.code = code
        self.detail = detail or self.code
        self.status_code = status_code
        self.attempt: int | None = None
        self.max_attempts: int | None = None
        # Instance attribute shadows the class default once annotated
        self.retryable = type(self).retryable
        super().__init__(self.code if detail is None else f"{self.code}: {detail}")

    def to_dict(self) -> dict[str, Any]:
        """Serialisable summary for API responses and logs."""
        data: dict[str, Any] = {
            "error": self.code,
            "detail": self.detail[:600],
            "retryable": self.retryable,
        }
        if self.attempt is not None:
            data["attempt"] = self.attempt
        if self.max_attempts is not None:
            data["max_attempts"] = self.max_attempts
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class ConfigurationError(ScoringError):
    """Evaluator credentials or SDK unavailable. Maps to service-unavailable."""

    code = "openai_not_configured"


class NotFoundError(ScoringError):
    """The candidate does not exist."""

    code = "candidate_not_found"


class TransientCallFailure(ScoringError):
    """Network or API failure talking to the evaluator."""

    code = "openai_generation_failed"
    retryable = True


class EmptyResponse(TransientCallFailure):
    """The evaluator returned no content."""

    code = "openai_empty_response"


class MalformedOutput(ScoringError):
    """The evaluator's output could not be parsed, even after repair."""

    code = "invalid_openai_json"
    retryable = True


class PersistenceFailure(ScoringError):
    """Score storage failed. Logged and absorbed, never raised to callers."""

    code = "persistence_failed"
