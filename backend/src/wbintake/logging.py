"""Structured logging configuration for the intake service.

Provides JSON-formatted logs for production and human-readable
logs for development.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import get_settings

# Attributes present on every LogRecord; anything else came in via ``extra``
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> None:
    """Configure logging based on settings."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
    logging.getLogger("postgrest").setLevel(logging.WARNING)

    logger = get_logger(__name__)
    logger.info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "log_level": settings.log_level,
            "log_format": settings.log_format,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        """Process the logging message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> LoggerAdapter:
    """Get a logger with additional context.

    Args:
        name: Logger name
        **context: Context fields to add to all log messages

    Returns:
        Logger adapter with context

    Usage:
        logger = get_context_logger(__name__, source="ManualReport")
        logger.info("Normalizing submission")  # Includes source
    """
    return LoggerAdapter(get_logger(name), context)


# =========================
# Convenience functions
# =========================


def log_submission_received(source: str, fields: dict[str, Any]) -> None:
    """Log an incoming submission.

    Args:
        source: Report source (VAPIReport, MapReport, ManualReport)
        fields: Submission payload, already redacted
    """
    logger = get_logger("wbintake.intake")
    logger.info(
        f"Received {source} submission",
        extra={"source": source, "payload": fields, "event": "submission_received"},
    )


def log_submission_rejected(source: str, code: str, details: str) -> None:
    """Log a submission that failed validation."""
    logger = get_logger("wbintake.intake")
    logger.info(
        f"Rejected {source} submission: {code}",
        extra={
            "source": source,
            "code": code,
            "details": details,
            "event": "submission_rejected",
        },
    )


def log_case_created(
    source: str,
    case_id: str,
    category: str,
    priority: str,
    persisted: bool,
    table: str | None = None,
) -> None:
    """Log a normalized case and whether it reached the store.

    Args:
        source: Report source
        case_id: Generated case identifier
        category: Assigned category
        priority: Assigned priority
        persisted: Whether the store accepted the record
        table: Table the record was written to
    """
    logger = get_logger("wbintake.intake")
    logger.info(
        f"Created case {case_id} from {source}",
        extra={
            "source": source,
            "case_id": case_id,
            "category": category,
            "priority": priority,
            "persisted": persisted,
            "table": table,
            "event": "case_created",
        },
    )


def log_persistence_failure(case_id: str, table: str, error: str) -> None:
    """Log a failed store write."""
    logger = get_logger("wbintake.storage")
    logger.warning(
        f"Failed to persist case {case_id} to {table}: {error}",
        extra={
            "case_id": case_id,
            "table": table,
            "error": error,
            "event": "persistence_failure",
        },
    )


def log_rate_limited(scope: str, identity: str, retry_after: int) -> None:
    """Log a rejected request from a client over its limit."""
    logger = get_logger("wbintake.ratelimit")
    logger.warning(
        f"Rate limit exceeded for {scope}",
        extra={
            "scope": scope,
            "client": identity,
            "retry_after": retry_after,
            "event": "rate_limit_exceeded",
        },
    )


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: str | None = None,
) -> None:
    """Log an API request.

    Args:
        method: HTTP method
        path: Request path
        status_code: Response status code
        duration_ms: Request duration in milliseconds
        request_id: Request correlation ID
    """
    logger = get_logger("wbintake.api")
    logger.info(
        f"{method} {path} - {status_code}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "request_id": request_id,
            "event": "api_request",
        },
    )
