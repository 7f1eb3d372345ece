"""Tests ensuring observability wiring is safe by default and traces plan work when enabled."""
from __future__ import annotations

import json

from milestone_ai.core.config import get_settings
from milestone_ai.core.context import request_id_ctx_var
from milestone_ai.observability import client as client_module
from milestone_ai.observability.tracing import trace
from milestone_ai.services.plan_generator import generate_plan


class _DummyTrace:
    def __init__(self, name, metadata=None):
        self.name = name
        self.metadata = dict(metadata or {})
        self.errors = []
        self.ended = False

    def update(self, metadata=None, error_info=None, **kwargs):
        if metadata:
            self.metadata.update(metadata)
        if error_info:
            self.errors.append(error_info)

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.traces = []

    def trace(self, name, metadata=None, **kwargs):
        trace = _DummyTrace(name, metadata)
        self.traces.append(trace)
        return trace


def test_client_is_none_when_opik_disabled(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "opik_enabled", False)
    client_module.reset_opik_client()
    try:
        assert client_module.get_opik_client() is None
    finally:
        client_module.reset_opik_client()


def test_enabled_without_api_key_is_skipped(monkeypatch) -> None:
    settings = get_settings()
    monkeypatch.setattr(settings, "opik_enabled", True)
    monkeypatch.setattr(settings, "opik_api_key", None)
    client_module.reset_opik_client()
    try:
        assert client_module.init_opik() is None
    finally:
        client_module.reset_opik_client()


def test_enabled_client_is_created_once(monkeypatch) -> None:
    settings = get_settings()
    monkeypatch.setattr(settings, "opik_enabled", True)
    monkeypatch.setattr(settings, "opik_api_key", "key")
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    client_module.reset_opik_client()
    try:
        first = client_module.get_opik_client()
        assert isinstance(first, _DummyOpik)
        assert client_module.get_opik_client() is first
    finally:
        client_module.reset_opik_client()


def test_trace_attaches_request_id_and_errors(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: dummy)
    token = request_id_ctx_var.set("req-1")
    try:
        try:
            with trace("plan.build", metadata={"goal": "G"}):
                raise ValueError("bad plan")
        except ValueError:
            pass
    finally:
        request_id_ctx_var.reset(token)

    recorded = dummy.traces[0]
    assert recorded.metadata["request_id"] == "req-1"
    assert recorded.errors == [{"message": "bad plan"}]
    assert recorded.ended is True


def test_generation_is_traced(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: dummy)

    class _StubLLM:
        def generate_plan_text(self, goal, *, history=None, prior_plan=None):
            return json.dumps({"weeks": []})

    generate_plan("Learn Go", _StubLLM())

    names = [recorded.name for recorded in dummy.traces]
    assert "plan.generate" in names
    assert "plan.build" in names
    assert "metric:plan.generate.latency_ms" in names
    generate_trace = next(recorded for recorded in dummy.traces if recorded.name == "plan.generate")
    assert generate_trace.metadata["source"] == "fragment"
