"""Tests for diagnostics — structured logging and exception hook."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

import diagnostics
from diagnostics import (
    JSONFormatter,
    _validate_log_dir,
    setup_excepthook,
    setup_structured_logging,
)

pytestmark = pytest.mark.smoke


@pytest.fixture
def app_dir(tmp_path):
    with patch("diagnostics.APP_DIR", str(tmp_path)):
        yield tmp_path


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def test_validate_log_dir_default(app_dir):
    assert _validate_log_dir("") == str(app_dir / "logs")


def test_validate_log_dir_inside_prefix(app_dir):
    inside = app_dir / "custom"
    assert _validate_log_dir(str(inside)) == str(inside.resolve())


def test_validate_log_dir_rejects_outside(app_dir, tmp_path_factory):
    outside = tmp_path_factory.mktemp("elsewhere")
    assert _validate_log_dir(str(outside)) == str(app_dir / "logs")


def test_json_formatter_fields():
    record = logging.LogRecord("keyer.test", logging.INFO, __file__, 1, "keyed %d", (4,), None)
    entry = json.loads(JSONFormatter().format(record))
    assert entry["level"] == "INFO"
    assert entry["logger"] == "keyer.test"
    assert entry["message"] == "keyed 4"
    assert "timestamp" in entry


def test_json_formatter_exception():
    try:
        raise ValueError("bad knob")
    except ValueError:
        record = logging.LogRecord(
            "keyer", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )
    entry = json.loads(JSONFormatter().format(record))
    assert entry["exception"]["type"] == "ValueError"
    assert "bad knob" in entry["exception"]["traceback"]


def test_structured_logging_writes_json(app_dir, restore_root_logger, monkeypatch):
    monkeypatch.delenv("KEYER_LOG_DIR", raising=False)
    monkeypatch.setenv("KEYER_LOG_LEVEL", "DEBUG")
    log_dir = setup_structured_logging()
    logging.getLogger("keyer.test").info("hello %s", "matte")
    for h in logging.getLogger().handlers:
        h.flush()

    lines = (app_dir / "logs" / diagnostics.LOG_FILENAME).read_text().splitlines()
    assert log_dir == str(app_dir / "logs")
    assert json.loads(lines[-1])["message"] == "hello matte"
    assert logging.getLogger().level == logging.DEBUG


def test_excepthook_logs_and_chains(caplog):
    original = sys.excepthook
    try:
        setup_excepthook()
        try:
            raise RuntimeError("uncaught")
        except RuntimeError:
            exc_info = sys.exc_info()
        with patch("sys.__excepthook__") as default_hook:
            with caplog.at_level(logging.CRITICAL, logger="diagnostics"):
                sys.excepthook(*exc_info)
        default_hook.assert_called_once_with(*exc_info)
        assert "Uncaught RuntimeError" in caplog.text
    finally:
        sys.excepthook = original
