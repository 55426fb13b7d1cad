"""Parsing and coercion of raw evaluator output.

Parsing returns a tagged result instead of raising: ``Parsed`` carries the
decoded object and whether it needed the repair pass, ``ParseFailure``
carries the reason. The evaluator client turns a failure into
MalformedOutput.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

from json_repair import repair_json

from applicant_scoring.scoring.schemas import (
    MAX_ITEM_CHARS,
    MAX_LIST_ITEMS,
    MAX_RATIONALE_CHARS,
    Provenance,
    StructuredEvaluation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parsed:
    """Raw text decoded into a JSON object."""

    payload: dict[str, Any]
    provenance: Provenance


@dataclass(frozen=True)
class ParseFailure:
    """Raw text could not be decoded into a JSON object."""

    reason: str


ParseResult = Parsed | ParseFailure


def parse_evaluation_json(raw: str) -> ParseResult:
    """Decode evaluator output, falling back to one syntactic repair pass.

    Args:
        raw: Response text from the evaluator.

    Returns:
        Parsed with provenance "strict" or "repaired", or ParseFailure.
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        strict_error = f"Parse error: {e}"
    else:
        if isinstance(payload, dict):
            return Parsed(payload=payload, provenance="strict")
        strict_error = f"Expected a JSON object, got {type(payload).__name__}"

    try:
        repaired = repair_json(raw, return_objects=True)
    except Exception as e:  # library errors mean unrepairable
        logger.debug("JSON repair raised: %s", e)
        return ParseFailure(reason=strict_error)

    if isinstance(repaired, dict) and repaired:
        logger.info("Evaluator output recovered by repair pass (%s)", strict_error)
        return Parsed(payload=repaired, provenance="repaired")
    return ParseFailure(reason=strict_error)


def coerce_score(value: Any) -> float | None:
    """Blank or non-numeric → None; numbers clamped into [0, 100]."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return max(0.0, min(100.0, number))


def coerce_string_list(value: Any) -> list[str] | None:
    """Keep at most MAX_LIST_ITEMS entries, each stringified and truncated."""
    if not isinstance(value, list):
        return None
    return [str(item)[:MAX_ITEM_CHARS] for item in value[:MAX_LIST_ITEMS]]


def coerce_rationale(value: Any) -> str | None:
    if not value:
        return None
    return str(value)[:MAX_RATIONALE_CHARS]


def to_evaluation(
    parsed: Parsed,
    model: str,
    version: str,
) -> StructuredEvaluation:
    """Build a StructuredEvaluation from a decoded payload.

    Args:
        parsed: Successful parse result.
        model: Model identifier that produced the output.
        version: Canonical version tag for the output format.
    """
    data = parsed.payload
    return StructuredEvaluation(
        overall_score=coerce_score(data.get("overall_score")),
        experience_fit=coerce_score(data.get("experience_fit")),
        skills_fit=coerce_score(data.get("skills_fit")),
        culture_fit=coerce_score(data.get("culture_fit")),
        location_fit=coerce_score(data.get("location_fit")),
        risk_flags=coerce_string_list(data.get("risk_flags")),
        strengths=coerce_string_list(data.get("strengths")),
        recommendations=coerce_string_list(data.get("recommendations")),
        rationale=coerce_rationale(data.get("rationale")),
        raw_json=data,
        model=model,
        version=version,
        provenance=parsed.provenance,
    )
