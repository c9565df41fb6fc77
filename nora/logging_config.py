"""
Central logging configuration for the Nora content service.

Every log line carries the context of the content operation it belongs to:
an HTTP request (``request_id`` plus ``operation="GET /api/v1/lessons"``) or a
maintenance command (``operation="import-lessons"`` plus ``source`` file).
The context lives in a ContextVar, set with ``log_context()`` by the request
middleware and by the CLI, so services never pass it around.

Usage:
    from nora.logging_config import get_logger, log_context
    logger = get_logger(__name__)

    with log_context(operation="sync-keywords", source="docs/keywords.md"):
        logger.info("Applied keyword sync", extra={"keywords_created": 3})
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional

# Fields of the operation in progress; empty outside a request or command
log_context_var: ContextVar[Mapping[str, Any]] = ContextVar("log_context", default={})

CONTEXT_FIELDS = ("request_id", "operation", "source")

# Attributes every LogRecord has; anything else on a record came from extra=
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "context"}


@contextmanager
def log_context(**fields: Any) -> Iterator[Mapping[str, Any]]:
    """
    Add fields to the logging context for the duration of the block.

    Nested blocks inherit the outer fields; ``None`` values are dropped.
    """
    merged = dict(log_context_var.get())
    merged.update({key: value for key, value in fields.items() if value is not None})
    token = log_context_var.set(merged)
    try:
        yield merged
    finally:
        log_context_var.reset(token)


def get_request_id() -> Optional[str]:
    """Request id of the HTTP request being served, if any."""
    return log_context_var.get().get("request_id")


class ContextFilter(logging.Filter):
    """Copies the current operation context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = log_context_var.get()
        record.context = dict(context)  # type: ignore[attr-defined]
        record.operation = context.get("operation", "-")  # type: ignore[attr-defined]
        record.request_id = context.get("request_id", "-")  # type: ignore[attr-defined]
        return True


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: context fields first, then extra= fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in getattr(record, "context", {}).items():
            log_obj[key] = _json_safe(value)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key in CONTEXT_FIELDS or value is None:
                continue
            log_obj[key] = _json_safe(value)

        return json.dumps(log_obj)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line format; shows the operation only when there is one."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-5s [%(name)s]%(where)s %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", {})
        parts = [f"{key}={context[key]}" for key in CONTEXT_FIELDS if key in context]
        record.where = f" ({' '.join(parts)})" if parts else ""  # type: ignore[attr-defined]
        return super().format(record)


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
    stream: Any = None,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: 'production' logs JSON lines, anything else console lines
        debug: If True, use DEBUG level regardless of log_level
        stream: Where to write; stderr by default
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Reconfiguring (CLI after import, app reload) must not duplicate output
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else ConsoleFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; records pick up the operation context on output."""
    return logging.getLogger(name)
