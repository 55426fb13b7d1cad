"""Applicant fit scoring: evaluator calls, versioned score cache, coalescing and backfill."""

__version__ = "0.1.0"
