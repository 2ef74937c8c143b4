"""
Logging configuration for the documentation assistant.

Pipeline steps log through :func:`log_event`, which attaches structured
fields (collection, passage and chunk counts, model) to the record. The JSON
formatter emits those fields as top-level keys; the console formatter appends
them as ``key=value`` pairs. Every record made while a query is in flight
carries that query's ID.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from doc_assistant.config import Settings

# Query ID context variable for correlating logs across one query's async calls
query_id_var: ContextVar[Optional[str]] = ContextVar("query_id", default=None)

FIELDS_ATTR = "extra_fields"

_SDK_LOGGERS = ("httpx", "openai", "LiteLLM", "litellm", "qdrant_client")

_logger: Optional[logging.Logger] = None


def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, FIELDS_ATTR, None) or {})


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for production log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        query_id = query_id_var.get()
        if query_id:
            entry["query_id"] = query_id

        # Structured fields never overwrite the envelope keys
        for key, value in _fields(record).items():
            entry.setdefault(key, value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable console format for development."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s [%(query_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.query_id = query_id_var.get() or "-"
        return super().format(record)

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        fields = _fields(record)
        if not fields:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in fields.items())


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the ``doc_assistant`` logger once per process."""
    global _logger

    if _logger is not None:
        return _logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.is_production else StandardFormatter())

    logger = logging.getLogger("doc_assistant")
    logger.handlers = [handler]
    logger.setLevel(getattr(logging, settings.log_level))
    logger.propagate = False

    sdk_level = logging.INFO if settings.debug else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    _logger = logger
    log_event(
        logger,
        "Logging configured",
        log_level=settings.log_level,
        environment=settings.environment.value,
        json=settings.is_production,
    )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``doc_assistant`` namespace."""
    return logging.getLogger(f"doc_assistant.{name}" if name else "doc_assistant")


def log_event(logger: logging.Logger, message: str, level: int = logging.INFO, **fields: Any) -> None:
    """Log a pipeline event with structured fields."""
    logger.log(level, message, extra={FIELDS_ATTR: fields})


def set_query_id(query_id: Optional[str] = None) -> str:
    """Set the query ID for the current context, generating one if omitted."""
    query_id = query_id or uuid.uuid4().hex[:12]
    query_id_var.set(query_id)
    return query_id


def get_query_id() -> Optional[str]:
    return query_id_var.get()


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an unexpected failure with its traceback.

    ``context`` entries become structured fields next to the error type and,
    for assistant errors, the error code.
    """
    fields: Dict[str, Any] = {"error_type": type(error).__name__}
    code = getattr(error, "code", None)
    if code:
        fields["error_code"] = code
    fields.update(context or {})
    get_logger("error").error(f"{type(error).__name__}: {error}", exc_info=error, extra={FIELDS_ATTR: fields})
