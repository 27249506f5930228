"""Logging setup for the nbpublish CLI."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Attach a single stream handler to the ``nbpublish`` logger.

    Calling it again replaces the previous handler instead of stacking one.
    """
    logger = logging.getLogger("nbpublish")
    logger.setLevel(_LEVELS.get(level, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_nbpublish", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._nbpublish = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
