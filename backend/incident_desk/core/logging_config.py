"""
Logging setup with per-request context.

Request method/path and the stored procedure being called are kept in a
context variable so every record emitted while serving a request carries them.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


class ContextFilter(logging.Filter):
    """Copy the current log context onto each record."""

    def filter(self, record):
        for key, value in _log_context.get({}).items():
            setattr(record, key, value)
        return True


class StructuredFormatter(logging.Formatter):
    """Prefix messages with whatever request context is available."""

    CONTEXT_FIELDS = (
        ("method", "method"),
        ("path", "path"),
        ("procedure", "procedure"),
    )

    def format(self, record):
        context_parts = [
            f"{label}={getattr(record, attr)}"
            for attr, label in self.CONTEXT_FIELDS
            if hasattr(record, attr)
        ]
        message = super().format(record)
        if context_parts:
            return f"[{' | '.join(context_parts)}] {message}"
        return message


def setup_logging(log_level: str = "INFO"):
    """
    Configure the root logger once for the whole application.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    formatter = StructuredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.addHandler(console_handler)

    logging.getLogger("pymysql").setLevel(logging.WARNING)


class LogContext:
    """Context manager that adds fields to the log context for its duration."""

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        updated = {**_log_context.get({}), **self.context}
        self._token = _log_context.set(updated)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
