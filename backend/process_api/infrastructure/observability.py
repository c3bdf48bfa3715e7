"""Structured Logging — JSON formatter, setup, and request lifecycle events.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (request_id, status, duration_ms, error) surfaced when present
    - JSON format in production, human-readable in development
    - Error details appear only in logs, never in response bodies

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once at process start; uvicorn runs with log_config=None
      so its records flow through the same root handler
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "method", "path", "request_id", "status", "duration_ms",
    "error", "cause", "signal", "addr", "state", "executions",
)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

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
        return json.dumps(log, ensure_ascii=False, default=str)


def level_from_string(level: str) -> int:
    """Map LOG_LEVEL values to logging levels; unknown values mean INFO."""
    return _LEVELS.get(level.strip().lower(), logging.INFO)


def setup_logging(level: str = "info", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(level_from_string(level))


def log_error(logger: logging.Logger, err: BaseException, msg: str, **fields):
    """Log an error with its string form and optional context fields."""
    logger.error(msg, extra={"error": str(err) or type(err).__name__, **fields})


class LoggingLifecycleObserver:
    """Emits "request start" / "request end" records for each /process call."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("process_api.requests")

    def on_start(self, method: str, path: str, request_id: str) -> None:
        self.logger.info("request start", extra={
            "method": method, "path": path, "request_id": request_id,
        })

    def on_end(
        self, method: str, path: str, request_id: str,
        status: int, duration_ms: int,
    ) -> None:
        self.logger.info("request end", extra={
            "method": method, "path": path, "request_id": request_id,
            "status": status, "duration_ms": duration_ms,
        })
