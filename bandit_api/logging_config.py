"""Structured logging configuration."""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any

from bandit_api.config import settings

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
})


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for observability tools (Datadog, CloudWatch, etc)."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra fields (from logger.info("msg", extra={...}))
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Setup structured JSON logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("bandit_api")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


logger = setup_logging(settings.log_level)


def _emit(level: str, message: str, event_type: str, **fields: Any) -> None:
    if "duration_ms" in fields:
        fields["duration_ms"] = round(fields["duration_ms"], 2)
    getattr(logger, level)(message, extra={"type": event_type, **fields})


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **extra: Any,
) -> None:
    """Log one served HTTP request."""
    _emit(
        "info",
        f"{method} {path} {status_code}",
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
        **extra,
    )


def log_db_query(
    query_name: str,
    duration_ms: float,
    rows_affected: int = 0,
    **extra: Any,
) -> None:
    """Log one Snowflake statement or transaction."""
    _emit(
        "info",
        f"DB query: {query_name}",
        "db_query",
        query_name=query_name,
        duration_ms=duration_ms,
        rows_affected=rows_affected,
        **extra,
    )


def log_algorithm(
    algorithm: str,
    experiment_id: str,
    duration_ms: float,
    **extra: Any,
) -> None:
    """Log one arm selection."""
    _emit(
        "info",
        f"Algorithm: {algorithm}",
        "algorithm",
        algorithm=algorithm,
        experiment_id=experiment_id,
        duration_ms=duration_ms,
        **extra,
    )


def log_outcome(
    arm_id: str,
    success: bool,
    successes: int,
    failures: int,
    **extra: Any,
) -> None:
    """Log a recorded outcome with the counters it produced."""
    _emit(
        "info",
        f"Outcome recorded for arm {arm_id}",
        "outcome",
        arm_id=arm_id,
        success=success,
        successes=successes,
        failures=failures,
        **extra,
    )


def log_error(message: str, error_type: str, **extra: Any) -> None:
    _emit("error", message, "error", error_type=error_type, **extra)
