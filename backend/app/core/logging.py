"""Application logging setup.

Configures the ``app`` logger tree once at startup. Output goes to stderr
either as plain text or, with ``LOG_JSON=true``, one JSON object per line.
"""

from __future__ import annotations

import json
import logging

from app.core.config import settings


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter used when LOG_JSON=true."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def _get_formatter(log_json: bool) -> logging.Formatter:
    if log_json:
        return JsonFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s in %(name)s: %(message)s")


def init_logging(level: str | None = None, log_json: bool | None = None) -> logging.Logger:
    """Initialise the application logger and return it."""

    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if log_json is None else log_json

    app_logger = logging.getLogger("app")
    if not app_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_get_formatter(use_json))
        app_logger.addHandler(handler)
    app_logger.setLevel(getattr(logging, level_name, logging.INFO))
    return app_logger
