"""Candidate scoring: evaluator client, retry policy, score store and orchestration."""

from applicant_scoring.scoring.backfill import BackfillScanner
from applicant_scoring.scoring.coalescer import ScoreCoalescer
from applicant_scoring.scoring.config import ScoringConfig
from applicant_scoring.scoring.context import ContextBuilder
from applicant_scoring.scoring.errors import (
    ConfigurationError,
    EmptyResponse,
    MalformedOutput,
    NotFoundError,
    PersistenceFailure,
    ScoringError,
    TransientCallFailure,
)
from applicant_scoring.scoring.llm_client import EvaluatorClient
from applicant_scoring.scoring.parsing import ParseFailure, Parsed, parse_evaluation_json
from applicant_scoring.scoring.repository import ScoreRepository
from applicant_scoring.scoring.retry import LinearBackoff, RetryController
from applicant_scoring.scoring.schemas import (
    GenerationResult,
    GenerationStatus,
    Score,
    ScoringContext,
    StructuredEvaluation,
)
from applicant_scoring.scoring.service import ScoringService

__all__ = [
    "BackfillScanner",
    "ConfigurationError",
    "ContextBuilder",
    "EmptyResponse",
    "EvaluatorClient",
    "GenerationResult",
    "GenerationStatus",
    "LinearBackoff",
    "MalformedOutput",
    "NotFoundError",
    "ParseFailure",
    "Parsed",
    "PersistenceFailure",
    "RetryController",
    "Score",
    "ScoreCoalescer",
    "ScoreRepository",
    "ScoringConfig",
    "ScoringContext",
    "ScoringError",
    "ScoringService",
    "StructuredEvaluation",
    "TransientCallFailure",
    "parse_evaluation_json",
]
