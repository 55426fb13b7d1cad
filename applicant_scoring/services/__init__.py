"""Service wiring for the applicant scoring pipeline."""

from applicant_scoring.services.scoring_runtime import ScoringRuntime

__all__ = ["ScoringRuntime"]
