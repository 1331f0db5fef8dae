"""
Logging setup for the Task API.

JSON lines in deployed environments, plain text for local development.
setup_logging() is called once when the FastAPI app module is imported and
is safe to call again.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from .settings import Settings

PACKAGE_LOGGER = "task_api"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Optional structured fields passed through `extra=`
_EXTRA_FIELDS = ("task_id", "count", "backend", "table", "region")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class _TaskApiHandler(logging.StreamHandler):
    """Marker type so repeated setup replaces our handler instead of stacking."""


# PUBLIC_INTERFACE
def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the package logger from settings and return it.

    - LOGGING_ENABLED=false silences the package logger and its children.
    - LOGGING_LEVEL maps debug/info/warn/error onto stdlib levels.
    - LOGGING_FORMAT selects JSONFormatter or a text format.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in logger.handlers if isinstance(h, _TaskApiHandler)]:
        logger.removeHandler(existing)

    handler = _TaskApiHandler()
    if settings.logging_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))

    logger.addHandler(handler)
    if settings.logging_enabled:
        logger.setLevel(_LEVELS.get(settings.logging_level, logging.DEBUG))
    else:
        # Above CRITICAL, so child loggers inheriting this level emit nothing
        logger.setLevel(logging.CRITICAL + 1)
    logger.propagate = False
    return logger
