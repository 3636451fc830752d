"""Structured JSON logging for notionkit.

Each record is a single-line JSON object so that request traces can be fed
straight into a log pipeline.  A retry emitted by the transport looks like::

    {"ts": "2026-10-19T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "notionkit.transport", "message": "Retrying request",
     "op": "request", "method": "POST", "path": "/search", "attempt": 1,
     "status_code": 503, "wait_seconds": 1.0}

Usage::

    from notionkit.observability import get_logger, log_fields

    log = get_logger("notionkit.transport")
    log.warning("Retrying request", extra=log_fields(op="request", attempt=1))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top level; ``exception`` is added when the record
    carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields:
            # Reserved keys win over caller-supplied fields.
            for key, value in extra_fields.items():
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def log_fields(**fields: Any) -> dict[str, Any]:
    """Wrap keyword arguments in the ``extra`` shape the formatter reads."""
    return {"extra_fields": fields}


# One handler per logger name, so repeated ``get_logger`` calls from
# different modules never stack handlers.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "notionkit",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Sub-module loggers use dotted children such as
        ``"notionkit.transport"``.
    level:
        Minimum level, as an ``int`` or a case-insensitive level name.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The configured logger.  Only the first call for a given *name*
        attaches a handler.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
