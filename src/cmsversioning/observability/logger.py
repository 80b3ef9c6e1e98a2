"""Structured JSON logger for cmsversioning.

History and comparison events are written one JSON object per line, so an
editor host can forward them to its log pipeline as they are.  The package
logs under two child names:

* ``cmsversioning.history`` -- commits and discarded pending edits (DEBUG)
* ``cmsversioning.diff`` -- comparisons (DEBUG), fetch failures (WARNING)

A fetch failure, for example, renders as::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "cmsversioning.diff", "message": "Version comparison failed",
     "op": "compare", "version_id": "v42", "error": "Version v42 not found"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _json_default(value: Any) -> Any:
    # DiffType / ErrorCode render as "added", "FETCH_ERROR", ...
    if isinstance(value, Enum):
        return value.value
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top-level object.  Enum members are written as their
    value and any other non-JSON value as its ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_fields", None) or {})

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=_json_default)


# Logger names that already carry our handler.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "cmsversioning",
    *,
    level: int | str = logging.INFO,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the JSON logger for *name*, configuring it on first use.

    Parameters
    ----------
    name:
        Logger name, ``"cmsversioning.history"`` or ``"cmsversioning.diff"``
        inside the package.
    level:
        Minimum level as an ``int`` or a case-insensitive name.  ``INFO``
        by default, which hides per-commit and per-comparison DEBUG events
        until the host lowers it.  Ignored when *name* is already
        configured.
    stream:
        Handler output stream.  Defaults to ``sys.stderr``.
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    # The handler above is the only output; don't repeat through root.
    logger.propagate = False

    _configured_loggers.add(name)
    return logger
