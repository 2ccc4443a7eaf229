"""
Root logger setup for the CLI and the API server.

``configure_logging`` runs once per process, from ``cli.py`` (every command)
and from ``serve`` before uvicorn starts. Collectors, scoring and the
pipeline only ever call ``logging.getLogger(__name__)``.

Console output goes to stderr: ``analyze --json`` and ``show --json`` print
the analysis on stdout and must stay machine-readable.

With ``[logging] json_format = true`` each line is a JSON object, and any
``extra=`` fields (e.g. ``url``) are lifted to the top level::

    {"ts": "2026-10-19T12:00:00Z", "level": "WARNING",
     "logger": "site_prospector.collectors.freshness", "msg": "...", "url": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from site_prospector.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Chatty at INFO: one line per request.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access")

_STANDARD_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg, exc, extras."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, Any] = {
            "ts": created.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        line.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_KEYS and not key.startswith("_")
        )
        return json.dumps(line, default=str)


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Replaces any handlers installed by an earlier call, so tests and the
    ``serve`` command can reconfigure freely.

    Args:
        config: ``[logging]`` section; ``log_file = ""`` disables the file.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = (
        JsonLineFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers = [_handler(logging.StreamHandler(sys.stderr), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _handler(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
