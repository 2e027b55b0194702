"""Logging configuration for the workflow engine.

Records are tagged with the run or request they belong to. The engine binds
``execution_id`` and ``workflow_id`` for the duration of a run, the HTTP
middleware binds ``request_id``, and :class:`RunContextFilter` copies whatever
is bound onto each record. Binding lives in a context variable, so concurrent
runs on one event loop never see each other's ids.
"""

import contextvars
import json
import logging
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(funcName)s:%(lineno)d] - %(message)s"

# Library loggers held at a fixed level regardless of the application level
LIBRARY_LOG_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "asyncio": logging.WARNING,
}

_bound_fields: contextvars.ContextVar = contextvars.ContextVar("autoflow_log_fields", default={})


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with bound run fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(getattr(record, "extra_fields", {}))

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(entry, default=str)


class RunContextFilter(logging.Filter):
    """Adds the currently bound run/request fields to each record.

    Fields passed explicitly through ``extra_fields`` win over bound ones.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.extra_fields = {**_bound_fields.get(), **getattr(record, "extra_fields", {})}
        return True


_context_filter = RunContextFilter()


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    structured: bool = False,
    max_size: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the root logger for the workflow engine.

    Replaces any handlers already installed on the root logger, so calling it
    again (e.g. on application restart in tests) does not duplicate output.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; the file is rotated at ``max_size`` bytes
        log_format: Format string for plain-text output
        structured: Emit JSON lines instead of plain text
        max_size: Rotation threshold in bytes
        backup_count: Rotated files to keep

    Returns:
        Root logger instance
    """
    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(fmt=log_format or DEFAULT_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(log_file, maxBytes=max_size, backupCount=backup_count))

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(_context_filter)
        root_logger.addHandler(handler)

    for name, library_level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name."""
    return logging.getLogger(name)


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every record logged inside the block.

    Nested blocks add to the outer binding; leaving a block restores exactly
    what was bound before it.
    """
    token = _bound_fields.set({**_bound_fields.get(), **fields})
    try:
        yield
    finally:
        _bound_fields.reset(token)


def get_logging_context() -> Dict[str, Any]:
    """Return a copy of the fields currently bound."""
    return dict(_bound_fields.get())


def log_with_context(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """Log a message carrying additional structured fields."""
    logger.log(level, message, extra={"extra_fields": fields})


class RetryLogger:
    """Reports the attempts of a retried operation, e.g. one node's processor."""

    def __init__(self, operation: str):
        self.operation = operation
        self.logger = get_logger(f"autoflow.retry.{operation}")

    def attempt_failed(self, error: Exception, attempt: int, max_attempts: int) -> None:
        log_with_context(
            self.logger, logging.WARNING,
            f"{self.operation}: attempt {attempt}/{max_attempts} failed, retrying",
            operation=self.operation,
            attempt=attempt,
            max_attempts=max_attempts,
            error_type=type(error).__name__,
            error_message=str(error)
        )

    def recovered(self, attempts_used: int) -> None:
        log_with_context(
            self.logger, logging.INFO,
            f"{self.operation}: succeeded on attempt {attempts_used}",
            operation=self.operation,
            attempts_used=attempts_used,
            outcome="recovered"
        )

    def gave_up(self, error: Exception, attempts_used: int) -> None:
        log_with_context(
            self.logger, logging.ERROR,
            f"{self.operation}: giving up after {attempts_used} attempt(s)",
            operation=self.operation,
            attempts_used=attempts_used,
            error_type=type(error).__name__,
            error_message=str(error),
            outcome="failed"
        )
