"""Data models for the applicant scoring pipeline.

Score maps 1:1 to a ``candidate_ai_scores`` row. ScoringContext and
StructuredEvaluation are ephemeral: built per generation attempt and
discarded once the score is persisted.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

# Bounds applied to evaluator output before persistence
MAX_LIST_ITEMS = 10
MAX_ITEM_CHARS = 100
MAX_RATIONALE_CHARS = 800

Provenance = Literal["strict", "repaired"]


class GenerationStatus(str, enum.Enum):
    """Outcome of generate_or_fetch."""

    EXISTING = "existing"
    GENERATED = "generated"
    REGENERATED = "regenerated"


class ScoringContext(BaseModel):
    """Everything the evaluator is shown for one candidate.

    ``combined_text`` is already truncated to the configured cap.
    """

    candidate_id: int
    name: str = ""
    email: str = ""
    job_title: str = ""
    location: str = ""
    years_experience: str = ""
    expected_salary: str = ""
    combined_text: str = ""


class StructuredEvaluation(BaseModel):
    """Evaluator output after coercion and truncation.

    Fit scores are 0-100 or None when the evaluator left them blank.
    ``provenance`` records whether the raw text parsed directly or only
    after the repair pass.
    """

    overall_score: float | None = Field(default=None, ge=0.0, le=100.0)
    experience_fit: float | None = Field(default=None, ge=0.0, le=100.0)
    skills_fit: float | None = Field(default=None, ge=0.0, le=100.0)
    culture_fit: float | None = Field(default=None, ge=0.0, le=100.0)
    location_fit: float | None = Field(default=None, ge=0.0, le=100.0)
    risk_flags: list[str] | None = None
    strengths: list[str] | None = None
    recommendations: list[str] | None = None
    rationale: str | None = Field(default=None, max_length=MAX_RATIONALE_CHARS)
    raw_json: dict[str, Any] = Field(default_factory=dict)
    model: str = ""
    version: str = ""
    provenance: Provenance = "strict"

    def score_fields(self) -> dict[str, Any]:
        """Evaluation columns written by the score store."""
        return self.model_dump(
            include={
                "overall_score",
                "experience_fit",
                "skills_fit",
                "culture_fit",
                "location_fit",
                "risk_flags",
                "strengths",
                "recommendations",
                "rationale",
                "raw_json",
                "provenance",
            }
        )


class Score(BaseModel):
    """A persisted evaluation result.

    Unique per (candidate_id, model, version). The latest score for a
    candidate is the row with the greatest created_at, ties broken by id.
    ``id`` is None only for a result that could not be persisted.
    """

    id: int | None = None
    candidate_id: int
    model: str
    version: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    overall_score: float | None = None
    experience_fit: float | None = None
    skills_fit: float | None = None
    culture_fit: float | None = None
    location_fit: float | None = None
    risk_flags: list[str] | None = None
    strengths: list[str] | None = None
    recommendations: list[str] | None = None
    rationale: str | None = None
    raw_json: dict[str, Any] | None = None
    provenance: Provenance | None = None

    @classmethod
    def from_evaluation(
        cls,
        candidate_id: int,
        evaluation: StructuredEvaluation,
        version: str,
    ) -> "Score":
        """Unpersisted score built straight from an evaluation."""
        return cls(
            candidate_id=candidate_id,
            model=evaluation.model,
            version=version,
            **evaluation.score_fields(),
        )


class GenerationResult(BaseModel):
    """Return value of generate_or_fetch."""

    score: Score
    status: GenerationStatus

    @property
    def already_existed(self) -> bool:
        return self.status is GenerationStatus.EXISTING
