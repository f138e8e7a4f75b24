import json
import logging

import pytest

from branchship import observability as obs
from branchship.config_schema import LoggingConfig
from branchship.observability import (
    LOGGER_NAME,
    configure_logging,
    log_action,
    log_debug,
    log_warning,
    timeit,
)


def _last_json(caplog):
    return json.loads(caplog.records[-1].message)


def test_log_action_emits_json(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    log_action("publish", outcome="ok", duration_ms=12.3456, remote="origin")
    data = _last_json(caplog)
    assert data["action"] == "publish"
    assert data["outcome"] == "ok"
    assert data["duration_ms"] == 12.35
    assert data["remote"] == "origin"
    assert "ts" in data


def test_timeit_success_logs(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    with timeit("ship", trunk="main"):
        pass
    data = _last_json(caplog)
    assert data["action"] == "ship"
    assert data["outcome"] == "ok"
    assert data["trunk"] == "main"
    assert isinstance(data["duration_ms"], (int, float))


def test_timeit_result_fields_and_outcome(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    with timeit("ship") as info:
        info["status"] = "push_failed"
        info["outcome"] = "failed"
    data = _last_json(caplog)
    assert data["status"] == "push_failed"
    assert data["outcome"] == "failed"


def test_timeit_error_logs(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    with pytest.raises(RuntimeError):
        with timeit("ship"):
            raise RuntimeError("boom")
    assert _last_json(caplog)["outcome"] == "error"


def test_log_debug_respects_level(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    log_debug("hidden", x=1)
    assert not any("hidden" in r.message for r in caplog.records)


def test_log_warning_includes_fields(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    log_warning("publish failed", reason="rejected")
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert 'publish failed {"reason":"rejected"}' == record.message


def test_file_handler_writes_to_configured_dir(tmp_path):
    log_dir = tmp_path / "logs"
    configure_logging(LoggingConfig(dir=str(log_dir), level="DEBUG"))
    log_action("confirm", branch="feature")
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    files = list(log_dir.glob("branchship_*.log"))
    assert len(files) == 1
    assert '"action":"confirm"' in files[0].read_text(encoding="utf-8")


def test_disable_file_from_config(tmp_path):
    configure_logging(LoggingConfig(dir=str(tmp_path / "logs"), disable_file=True))
    log_action("confirm")
    assert obs._get_log_file_path() is None
    assert not (tmp_path / "logs").exists()


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("BRANCHSHIP_LOG_LEVEL", "debug")
    assert obs._get_log_level() == logging.DEBUG
