"""
Prometheus metrics for monitoring the scoring pipeline.

Defines and exposes metrics for:
- Evaluator call outcomes and latency
- Retries and repaired outputs
- Generation results by status
- Coalescer in-flight set and suppressed enqueues
- Backfill sweep activity

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from applicant_scoring.config.settings import get_settings

logger = logging.getLogger(__name__)

# Evaluator calls are slow; buckets reach well past the default SDK timeout
LATENCY_BUCKETS = (0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the scoring pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_evaluator_call("success", latency=1.8)
        metrics.record_generation("generated")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.evaluator_calls = Counter(
            "applicant_scoring_evaluator_calls_total",
            "Total evaluator invocations",
            ["outcome"],  # success, repaired, transient, empty, malformed, config
        )

        self.evaluator_latency = Histogram(
            "applicant_scoring_evaluator_latency_seconds",
            "Time spent waiting on the evaluator API",
            buckets=LATENCY_BUCKETS,
        )

        self.retries = Counter(
            "applicant_scoring_retries_total",
            "Evaluator attempts that were retried after a failure",
            ["error_type"],
        )

        self.generations = Counter(
            "applicant_scoring_generations_total",
            "Generate-or-fetch results",
            ["status"],  # existing, generated, regenerated, failed
        )

        self.coalesced = Counter(
            "applicant_scoring_coalesced_total",
            "Enqueue calls suppressed because the candidate was already in flight",
        )

        self.dropped = Counter(
            "applicant_scoring_dropped_total",
            "Enqueue calls dropped because the work queue was full",
        )

        self.in_flight = Gauge(
            "applicant_scoring_in_flight",
            "Candidates currently queued or being scored",
        )

        self.backfill_enqueued = Counter(
            "applicant_scoring_backfill_enqueued_total",
            "Candidates enqueued by the backfill sweep",
        )

        self.backfill_sweeps = Counter(
            "applicant_scoring_backfill_sweeps_total",
            "Backfill sweeps run",
            ["status"],  # success, error
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start HTTP server for Prometheus scraping.

        Args:
            port: Port to listen on (defaults to settings.metrics_port)
        """
        port = port or get_settings().metrics_port
        start_http_server(port)
        logger.info("Metrics server started on port %d", port)

    def record_evaluator_call(self, outcome: str, latency: float | None = None) -> None:
        """
        Record one evaluator invocation.

        Args:
            outcome: Call outcome label
            latency: Seconds spent in the API call, if it was made
        """
        self.evaluator_calls.labels(outcome=outcome).inc()
        if latency is not None:
            self.evaluator_latency.observe(latency)

    def record_retry(self, error_type: str) -> None:
        """Record a retried attempt."""
        self.retries.labels(error_type=error_type).inc()

    def record_generation(self, status: str) -> None:
        """Record a generate-or-fetch result."""
        self.generations.labels(status=status).inc()

    def set_in_flight(self, count: int) -> None:
        """Set the in-flight gauge."""
        self.in_flight.set(count)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
