"""Structured logging configuration.

Rx-Triage logs through the standard library. Modules create their logger with
``logging.getLogger(__name__)``; surfaces (CLI, HTTP API) call
``configure_logging(settings)`` once at startup.

Two output styles are supported:
    - Human-readable lines for terminals (default)
    - One JSON object per line (``RX_JSON_LOGS=true``) for log shippers

Context that a log call passes through ``extra`` becomes top-level JSON keys:
either a dict under ``extra_fields`` (e.g. per-column defaulted-cell counts
from the ingester) or the request attributes set by the API middleware.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

CONTEXT_ATTRIBUTES = ("request_id", "endpoint", "source")

# Chatty third-party loggers capped at WARNING
QUIET_LOGGERS = ("uvicorn.access", "multipart", "python_multipart")


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        for attribute in CONTEXT_ATTRIBUTES:
            if hasattr(record, attribute):
                log_data[attribute] = getattr(record, attribute)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(use_json: bool = False, log_level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Parameters:
        use_json: Emit JSON lines instead of human-readable text
        log_level: Level name; unknown names fall back to INFO
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # stderr keeps CLI tables on stdout clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if use_json:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(settings) -> None:
    """Apply RX_LOG_LEVEL and RX_JSON_LOGS from a Settings instance."""
    setup_logging(use_json=settings.json_logs, log_level=settings.log_level)
