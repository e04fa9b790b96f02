"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import importlib
import logging
from typing import Any, Dict

from habitcoach.core.context import bind_user, request_id_ctx_var, user_id_ctx_var
from habitcoach.core.logging import RequestContextFilter
from habitcoach.observability import client as client_module
from habitcoach.observability import tracing


class _RecordingClient:
    def __init__(self):
        self.calls: list[Dict[str, Any]] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        self.calls.append({"name": name, "metadata": metadata or {}})
        return None


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import habitcoach.core.config as core_config
    import habitcoach.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    client_module.reset_opik()


def test_client_is_none_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", False)
    client_module.reset_opik()

    assert client_module.get_opik_client() is None
    client_module.reset_opik()


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("noop", metadata={"k": "v"}) as opik_trace:
        assert opik_trace is None


def test_trace_uses_bound_request_context(monkeypatch) -> None:
    recording = _RecordingClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: recording)
    request_token = request_id_ctx_var.set("req-42")
    user_token = bind_user("user-7")
    try:
        with tracing.trace("plan.today", metadata={"date": "2025-01-01"}):
            pass
        with tracing.trace("plan.today", user_id="explicit-user"):
            pass
    finally:
        user_id_ctx_var.reset(user_token)
        request_id_ctx_var.reset(request_token)

    assert recording.calls[0]["metadata"] == {"date": "2025-01-01", "user_id": "user-7", "request_id": "req-42"}
    assert recording.calls[1]["metadata"]["user_id"] == "explicit-user"


def test_log_records_carry_request_context() -> None:
    record = logging.LogRecord("habitcoach", logging.INFO, __file__, 1, "hello", None, None)
    request_token = request_id_ctx_var.set("req-1")
    user_token = bind_user("user-1")
    try:
        RequestContextFilter().filter(record)
    finally:
        user_id_ctx_var.reset(user_token)
        request_id_ctx_var.reset(request_token)

    assert record.request_id == "req-1"
    assert record.user_id == "user-1"

    bare = logging.LogRecord("habitcoach", logging.INFO, __file__, 1, "hello", None, None)
    RequestContextFilter().filter(bare)
    assert bare.request_id == "-"
    assert bare.user_id == "-"
