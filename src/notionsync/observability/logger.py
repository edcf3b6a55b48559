"""Structured JSON logger for notionsync.

Each record is written as one JSON object per line::

    {"ts": "2026-01-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "notionsync.sync", "message": "sync complete",
     "page_id": "abc123", "updates": 1, "deletes": 0, "inserts": 2}

Usage::

    from notionsync.observability import get_logger

    log = get_logger("notionsync.sync")
    log.info("sync complete", extra={"extra_fields": {"page_id": "abc"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a single-line JSON object.

    Guaranteed keys are ``ts`` (UTC ISO-8601), ``level``, ``logger`` and
    ``message``. Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top level; ``exception`` is added when the record
    carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if fields:
            entry.update(fields)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# One handler per logger name keeps get_logger idempotent.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "notionsync",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger with a :class:`StructuredFormatter` handler.

    Parameters
    ----------
    name:
        Logger name, e.g. ``"notionsync.transport"``.
    level:
        Minimum level as an ``int`` or a case-insensitive name.
    stream:
        Output stream for the handler. Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        Repeated calls with the same *name* return the same logger without
        stacking handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
        logger.setLevel(resolved)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
