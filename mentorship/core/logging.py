"""Logging configuration for mentorship-service.

Two output shapes, selected by LOG_JSON:

  _ContainerFormatter: human-readable, single-line, for local dev.
  _JsonFormatter: one JSON object per line, for log aggregation.

Request-scoped fields (request_id, method, path, status_code, duration_ms)
are attached to records by the RequestContextMiddleware and surface as
top-level keys in JSON output. Workflow fields (doubt_id, assignment_id,
user_id) are passed by callers through ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

_NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx")


def _iso_timestamp(record: logging.LogRecord) -> str:
    # Millisecond precision, local offset: 2026-10-18T09:15:02.041+0000
    stamp = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()
    return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}" + stamp.strftime("%z")


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter for container stdout.

    WARNING and above carry a ``[file:line]`` suffix; tracebacks follow
    on the next lines when exc_info is set.
    """

    _PLAIN = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOCATED = _PLAIN + "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(self._PLAIN)
        self._located = logging.Formatter(self._LOCATED)
        self._located.formatTime = self.formatTime  # type: ignore[method-assign]

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return _iso_timestamp(record)

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return self._located.format(record)
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter; unknown ``extra`` keys are not emitted."""

    CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "user_id",
        "assignment_id",
        "doubt_id",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": _iso_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in self.CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    Unknown level names fall back to INFO. HTTP server and client
    libraries are held at WARNING or above.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
