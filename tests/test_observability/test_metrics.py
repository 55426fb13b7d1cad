"""Tests for the Prometheus metrics collector."""

from applicant_scoring.observability.metrics import get_metrics


def _value(counter, **labels) -> float:
    metric = counter.labels(**labels) if labels else counter
    return metric._value.get()


def test_singleton() -> None:
    assert get_metrics() is get_metrics()


def test_record_generation() -> None:
    metrics = get_metrics()
    before = _value(metrics.generations, status="generated")

    metrics.record_generation("generated")

    assert _value(metrics.generations, status="generated") == before + 1


def test_record_evaluator_call_with_latency() -> None:
    metrics = get_metrics()
    before = _value(metrics.evaluator_calls, outcome="repaired")

    metrics.record_evaluator_call("repaired", latency=1.2)

    assert _value(metrics.evaluator_calls, outcome="repaired") == before + 1


def test_in_flight_gauge() -> None:
    metrics = get_metrics()

    metrics.set_in_flight(4)

    assert metrics.in_flight._value.get() == 4
