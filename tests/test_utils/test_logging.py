"""
Tests for utils/logging.py.

What we test
------------
1. JSON lines carry ts / level / logger / msg plus any extra= keys.
2. The text formatter stamps UTC times.
3. configure_logging() routes the console to stderr, writes the optional
   log file, and replaces earlier handlers on a second call.
"""

from __future__ import annotations

import json
import logging
import sys

import pytest

from branch_scorecard.config import LoggingConfig
from branch_scorecard.utils.logging import (
    JsonLineFormatter,
    build_formatter,
    configure_logging,
)


def _record(msg: str = "Scored %s", *args, **extra) -> logging.LogRecord:
    record = logging.makeLogRecord({
        "name": "branch_scorecard.aggregation.report",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": msg,
        "args": args or ("credit_risk",),
        "created": 0.0,
    })
    record.__dict__.update(extra)
    return record


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


# ── Formatters ────────────────────────────────────────────────────────────────


class TestJsonLineFormatter:
    def test_core_fields(self):
        line = json.loads(JsonLineFormatter().format(_record()))
        assert line == {
            "ts": "1970-01-01T00:00:00Z",
            "level": "INFO",
            "logger": "branch_scorecard.aggregation.report",
            "msg": "Scored credit_risk",
        }

    def test_extra_keys(self):
        line = json.loads(JsonLineFormatter().format(_record(rule_set="efficiency", period="2026Q1")))
        assert line["rule_set"] == "efficiency"
        assert line["period"] == "2026Q1"

    def test_non_ascii_kept(self):
        out = JsonLineFormatter().format(_record("%s", "北京市分行"))
        assert "北京市分行" in out


class TestTextFormatter:
    def test_utc_timestamp(self):
        out = build_formatter(json_format=False).format(_record())
        assert out.startswith("1970-01-01T00:00:00Z INFO")
        assert out.endswith("| Scored credit_risk")

    def test_json_switch(self):
        assert isinstance(build_formatter(json_format=True), JsonLineFormatter)


# ── configure_logging ─────────────────────────────────────────────────────────


class TestConfigureLogging:
    def test_console_on_stderr(self, restore_root):
        configure_logging(LoggingConfig(level="WARNING"))
        [handler] = restore_root.handlers
        assert handler.stream is sys.stderr
        assert restore_root.level == logging.WARNING

    def test_log_file(self, restore_root, tmp_path):
        path = tmp_path / "logs" / "scorecard.log"
        configure_logging(LoggingConfig(level="INFO", log_file=str(path), json_format=True))
        logging.getLogger("branch_scorecard.test").info("hello", extra={"period": "2026-03"})
        for handler in restore_root.handlers:
            handler.flush()
        line = json.loads(path.read_text(encoding="utf-8").strip())
        assert line["msg"] == "hello"
        assert line["period"] == "2026-03"

    def test_reconfigure_replaces_handlers(self, restore_root):
        configure_logging(LoggingConfig())
        configure_logging(LoggingConfig(level="DEBUG"))
        assert len(restore_root.handlers) == 1
        assert restore_root.level == logging.DEBUG
