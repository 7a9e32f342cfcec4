# ruff: noqa: PLR6301
"""Logging for sqlbind.

Every module logs through :func:`get_logger`, which places loggers under the
``sqlbind`` namespace and tags records with the correlation id of the current
CLI run. Structured fields travel in ``extra={"extra_fields": {...}}`` and are
flattened into the JSON lines written by :class:`StructuredFormatter`.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from sqlbind._serialization import encode_json
from sqlbind.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import LogRecord

__all__ = (
    "LOG_FORMATS",
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlbind"
LOG_FORMATS = ("rich", "structured", "simple")
SIMPLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlbind_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation id of the current run, or clear it with None."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    ``extra_fields`` are merged into the top level object, so a validator
    record carries ``operation``, ``statement_index`` and ``duration_ms`` next
    to the message.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the current correlation id onto each record."""

    def filter(self, record: LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``sqlbind`` or ``sqlbind.<name>`` with a correlation filter attached.

    Args:
        name: Dotted module name, with or without the ``sqlbind.`` prefix.

    Returns:
        The logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def _console_handler(format_style: str) -> logging.Handler:
    if format_style == "structured":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        return handler
    if format_style == "rich":
        from rich.logging import RichHandler

        handler = RichHandler(show_path=False, markup=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    return handler


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: Sequence[logging.Handler] | None = None,
) -> None:
    """Install handlers on the ``sqlbind`` logger, replacing any previous ones.

    Args:
        level: Level name, case insensitive.
        format_style: One of :data:`LOG_FORMATS`. ``structured`` writes JSON
            lines to stdout, ``rich`` uses a rich console handler, ``simple``
            writes plain text to stderr.
        log_to_file: Path of an additional JSON lines log file.
        extra_handlers: Handlers added after the console and file handlers.

    Raises:
        ImproperConfigurationError: For an unknown level or format.
    """
    if format_style not in LOG_FORMATS:
        msg = f"Unknown log format {format_style!r}, expected one of {', '.join(LOG_FORMATS)}"
        raise ImproperConfigurationError(msg)
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Unknown log level {level!r}"
        raise ImproperConfigurationError(msg)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(format_style))
    if log_to_file:
        file_handler = logging.FileHandler(log_to_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)
    for handler in extra_handlers or ():
        root_logger.addHandler(handler)
    root_logger.propagate = False

    log_with_context(
        root_logger,
        logging.DEBUG,
        "sqlbind logging configured",
        level=level.upper(),
        format_style=format_style,
        handlers_count=len(root_logger.handlers),
    )


def log_with_context(logger: logging.Logger, level: int, message: str, /, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached for structured output."""
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"extra_fields": extra_fields}, stacklevel=2)
