"""Tests for the queue runtime entry point."""

from pathlib import Path

import pytest

from sheet_risk import handler as handler_module
from sheet_risk.config import _ENV_VARS
from sheet_risk.errors import ConfigurationError
from tests.helpers import make_body


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for candidates in _ENV_VARS.values():
        for var in candidates:
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("MONGO_URI", f"sqlite:///{tmp_path / 'handler.db'}")
    monkeypatch.setenv("LLM_PROVIDER", "heuristic")
    monkeypatch.setattr(handler_module, "configure_logging", lambda level=None: None)
    yield
    handler_module.shutdown()


def test_handler_reports_only_failed_ids(env) -> None:
    event = {
        "Records": [
            {"messageId": "a", "body": make_body(row_index=3)},
            {"messageId": "b", "body": "not json"},
            {"messageId": "c", "body": make_body(row_index=4)},
        ]
    }
    assert handler_module.handler(event) == {"batchItemFailures": [{"itemIdentifier": "b"}]}


def test_worker_reused_across_invocations(env) -> None:
    handler_module.handler({"Records": []})
    worker = handler_module._worker
    handler_module.handler({"Records": [{"messageId": "x", "body": make_body()}]})
    assert handler_module._worker is worker


def test_shutdown_resets_state(env) -> None:
    handler_module.handler({"Records": []})
    handler_module.shutdown()
    assert handler_module._worker is None
    assert handler_module._loop is None


def test_bad_configuration_aborts(monkeypatch: pytest.MonkeyPatch) -> None:
    for candidates in _ENV_VARS.values():
        for var in candidates:
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(handler_module, "configure_logging", lambda level=None: None)
    try:
        with pytest.raises(ConfigurationError):
            handler_module.handler({"Records": []})
    finally:
        handler_module.shutdown()
