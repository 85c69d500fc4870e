"""
Log output for the scorecard CLI.

``configure_logging(config)`` is called once by each CLI command after the
config loads.  Library modules only ever do ``log = logging.getLogger(__name__)``.

Scoring faults the engine recovers from (a provider miss filled with zero, a
non-positive target scored with its fallback) are logged at DEBUG; a report
build logs one INFO line.  Everything goes to stderr because ``score``,
``compare`` and ``export`` write JSON or tables to stdout.

With ``[logging] json_format = true`` each line is a JSON object::

    {"ts": "2026-04-01T08:00:00Z", "level": "INFO",
     "logger": "branch_scorecard.aggregation.report",
     "msg": "Scored credit_risk 2026Q1: 4 branches, 0 fallbacks, 1 missing records",
     "rule_set": "credit_risk", "period": "2026Q1"}

Keys passed through ``extra=`` appear next to ``msg``.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from branch_scorecard.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
UTC_FORMAT  = "%Y-%m-%dT%H:%M:%SZ"

_STANDARD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; timestamps in UTC."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "ts":     self.formatTime(record, UTC_FORMAT),
            "level":  record.levelname,
            "logger": record.name,
            "msg":    record.getMessage(),
        }
        entry.update(
            (k, v) for k, v in vars(record).items()
            if k not in _STANDARD_KEYS and not k.startswith("_")
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonLineFormatter()
    formatter = logging.Formatter(TEXT_FORMAT, datefmt=UTC_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optionally file) handlers on the root logger.

    Replaces any handlers already installed, so calling it twice in one
    process (as the CLI tests do) does not duplicate output.

    Args:
        config: ``AppConfig.logging``.  ``log_file`` parents are created.
    """
    level     = logging.getLevelName(config.level.upper())
    formatter = build_formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
