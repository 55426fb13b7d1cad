"""Configuration for the applicant scoring pipeline.

Provides Pydantic settings for the evaluator API, retry/backoff policy,
context size, coalescer worker pool and backfill sweep cadence. All
settings can be overridden via SCORING_* environment variables.
"""

from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_ATTEMPTS = 1
MAX_ATTEMPTS = 5


class ScoringConfig(BaseSettings):
    """Configuration for evaluator calls, caching and background scoring.

    Settings can be overridden via environment variables prefixed with SCORING_.

    Example:
        SCORING_OPENAI_API_KEY=sk-...
        SCORING_MAX_ATTEMPTS=4
        SCORING_BACKFILL_INTERVAL=600
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Evaluator API
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key for the evaluator",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for evaluations; stored on each score row",
    )
    canonical_version: str = Field(
        default="v2",
        min_length=1,
        description="Version tag for non-forced generations",
    )
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, ge=256, le=16384)
    llm_timeout: float = Field(
        default=60.0,
        ge=5.0,
        le=300.0,
        description="Timeout in seconds for a single evaluator call",
    )

    # Retry policy
    max_attempts: int = Field(
        default=3,
        description="Evaluator attempts per generation, clamped to [1, 5]",
    )
    backoff_step_ms: int = Field(
        default=750,
        ge=0,
        description="Delay before retry n is n * step",
    )
    backoff_cap_ms: int = Field(
        default=5000,
        ge=0,
        description="Upper bound for a single backoff delay",
    )

    # Context assembly
    context_max_chars: int = Field(
        default=25_000,
        ge=1_000,
        description="Hard cap on concatenated document text sent to the evaluator",
    )
    extraction_url: str | None = Field(
        default=None,
        description="Text extraction service endpoint; None disables document text",
    )
    extraction_timeout: float = Field(default=20.0, ge=1.0, le=120.0)

    # Coalescer worker pool
    worker_count: int = Field(
        default=2,
        ge=1,
        le=16,
        description="Concurrent background generations",
    )
    queue_max_size: int = Field(
        default=500,
        ge=1,
        description="Pending background generations before enqueue drops",
    )

    # Backfill sweep
    backfill_enabled: bool = Field(default=True)
    backfill_initial_delay: float = Field(
        default=15.0,
        ge=0.0,
        description="Seconds after start before the first sweep",
    )
    backfill_interval: float = Field(
        default=300.0,
        ge=1.0,
        description="Seconds between sweeps",
    )
    backfill_batch_size: int = Field(default=20, ge=1, le=500)
    backfill_pacing: float = Field(
        default=0.5,
        ge=0.0,
        description="Seconds between enqueues within a sweep",
    )

    @field_validator("max_attempts", mode="before")
    @classmethod
    def clamp_max_attempts(cls, value: Any) -> int:
        """Out-of-range attempt counts are clamped instead of rejected."""
        return max(MIN_ATTEMPTS, min(MAX_ATTEMPTS, int(value)))

    @property
    def configured(self) -> bool:
        """Whether an evaluator API key is available."""
        return self.openai_api_key is not None and bool(
            self.openai_api_key.get_secret_value()
        )

    @property
    def backoff_step_seconds(self) -> float:
        return self.backoff_step_ms / 1000.0

    @property
    def backoff_cap_seconds(self) -> float:
        return self.backoff_cap_ms / 1000.0
