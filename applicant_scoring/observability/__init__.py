"""Logging and Prometheus metrics for the scoring pipeline."""

from applicant_scoring.observability.logging import bind_context, setup_logging
from applicant_scoring.observability.metrics import MetricsCollector, get_metrics

__all__ = ["MetricsCollector", "bind_context", "get_metrics", "setup_logging"]
