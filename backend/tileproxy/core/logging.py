"""Logging configuration for the tile proxy.

Logging is configured once at application start through
:func:`logging.config.dictConfig`. Modules obtain their loggers with
``logging.getLogger(__name__)``.

Example:
    >>> from tileproxy.core import logging as tileproxy_logging
    >>> tileproxy_logging.configure_logging(level="DEBUG", json_logs=True)
"""

from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter for request pipeline logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(*, level: str = "INFO", json_logs: bool = False) -> None:
    """Configure the root logger with a single console handler.

    Args:
        level: Root logging level name.
        json_logs: Format records as JSON objects instead of text lines.
    """
    formatters: dict[str, dict[str, Any]] = {
        "standard": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%SZ",
        }
    }
    if json_logs:
        formatters["json"] = {
            "()": JSONFormatter,
            "datefmt": "%Y-%m-%dT%H:%M:%SZ",
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "standard",
                }
            },
            "root": {
                "handlers": ["console"],
                "level": level.upper(),
            },
        }
    )
