"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

from habitcoach.core.context import bind_user, user_id_ctx_var
from habitcoach.observability import metrics
from habitcoach.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("report.daily.score", 8, metadata={"plan_id": "p-1"})

    assert dummy_client.traces, "Metric call should record a trace"
    recorded = dummy_client.traces[0]
    assert recorded.name == "metric:report.daily.score"
    assert recorded.metadata["value"] == 8
    assert recorded.metadata["plan_id"] == "p-1"
    assert recorded.ended is True


def test_log_metric_tags_bound_user(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    token = bind_user("user-3")
    try:
        metrics.log_metric("todo.toggle.success", 1)
    finally:
        user_id_ctx_var.reset(token)

    assert dummy_client.traces[0].metadata["user_id"] == "user-3"


def test_log_metric_without_client_is_silent(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)
    metrics.log_metric("plan.fallback.used", 1, metadata={"reason": "empty_response"})
