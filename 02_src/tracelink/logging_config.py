"""Logging setup for the tracelink services.

Caller and responder log one line per exchange with ``extra=trace_extra(...)``.
TraceContextFilter copies those ids, plus the service name, onto every record
passing through the handlers, so both the JSON and the text format can print
them and log lines can be joined with traces in the backend.
"""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import LOGS_DIR

LOG_FORMATS = ("json", "text")

# Per-request INFO lines from these duplicate the services' own.
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

TEXT_FORMAT = (
    "%(asctime)s %(levelname)-7s [%(service)s] %(name)s "
    "traceid=%(trace_id)s %(message)s"
)

MISSING = "-"


def trace_extra(context: Any) -> dict[str, Any]:
    """Logging ``extra`` keyword arguments tying a record to a TraceContext."""
    return {
        "extra": {
            "context": {
                "trace_id": context.trace_id_hex,
                "span_id": context.span_id_hex,
            }
        }
    }


class TraceContextFilter(logging.Filter):
    """Stamps service, trace_id and span_id on each record ("-" when unknown)."""

    def __init__(self, service: str | None = None):
        super().__init__()
        self._service = service or MISSING

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "context", None)
        ids = context if isinstance(context, dict) else {}
        record.service = self._service
        record.trace_id = ids.get("trace_id", MISSING)
        record.span_id = ids.get("span_id", MISSING)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; trace fields only when they are known."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in ("service", "trace_id", "span_id"):
            value = getattr(record, key, MISSING)
            if value != MISSING:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        context = getattr(record, "context", None)
        if context is not None:
            log_data["context"] = context

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    service: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Setup logging for a service process.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                   Defaults to LOG_LEVEL env var or INFO.
        log_file: Path to the rotating log file. Defaults to 04_logs/app.log.
        service: Service name stamped on every line.
        log_format: "json" (default, LOG_FORMAT env var) or "text". The file
                    handler always writes JSON.

    Raises:
        ValueError: If log_format is not one of LOG_FORMATS.
    """
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "json")).lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(
            f"unknown log format {log_format!r}, expected one of {', '.join(LOG_FORMATS)}"
        )

    log_path = Path(log_file) if log_file else LOGS_DIR / "app.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "trace": {
                    "()": "tracelink.logging_config.TraceContextFilter",
                    "service": service,
                },
            },
            "formatters": {
                "json": {"()": "tracelink.logging_config.JSONFormatter"},
                "text": {"format": TEXT_FORMAT},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": str(log_path),
                    "maxBytes": 10 * 1024 * 1024,  # 10 MB
                    "backupCount": 5,
                    "formatter": "json",
                    "filters": ["trace"],
                    "encoding": "utf-8",
                },
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": log_format,
                    "filters": ["trace"],
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"level": log_level, "handlers": ["file", "console"]},
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
