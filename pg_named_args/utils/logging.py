"""Logging setup for pg-named-args.

Loggers live under the ``pg_named_args`` namespace. While a template is being
processed its source label is held in a context variable, so every line the
scanner, the resolver or the query facade logs can name the template it
belongs to, including lines emitted from nested calls.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from pg_named_args._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Iterator
    from logging import LogRecord

__all__ = (
    "LOG_FORMATS",
    "LOG_LEVELS",
    "ROOT_LOGGER_NAME",
    "StructuredFormatter",
    "TemplateSourceFilter",
    "configure_logging",
    "get_logger",
    "get_template_source",
    "log_with_context",
    "template_context",
)

ROOT_LOGGER_NAME = "pg_named_args"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("simple", "structured")
SIMPLE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(template_source)s] %(message)s"

template_source_var: ContextVar[str | None] = ContextVar("pg_named_args_template_source", default=None)


def get_template_source() -> str | None:
    """Source label of the template currently being processed, if any."""
    return template_source_var.get()


@contextmanager
def template_context(source: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``source``.

    Contexts nest; leaving the block restores the enclosing label.
    """
    token = template_source_var.set(source)
    try:
        yield
    finally:
        template_source_var.reset(token)


class TemplateSourceFilter(logging.Filter):
    """Copies the active template source onto records as ``template_source``."""

    def filter(self, record: LogRecord) -> bool:
        record.template_source = get_template_source() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Fields passed through :func:`log_with_context` are merged into the
    top level of the object.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        source = getattr(record, "template_source", None) or get_template_source()
        if source and source != "-":
            entry["template_source"] = source
        entry.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``pg_named_args`` namespace.

    Args:
        name: Dotted name; prefixed with ``pg_named_args.`` when it is not
            already inside the namespace. ``None`` returns the package logger.

    Returns:
        The logger.
    """
    if name is None or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: str = "WARNING",
    format_style: str = "simple",
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Send the package's log output to stderr.

    Replaces any handlers previously installed on the package logger and
    stops propagation to the root logger.

    Args:
        level: One of :data:`LOG_LEVELS`, case-insensitive.
        format_style: ``"simple"`` text lines or ``"structured"`` JSON lines.
        extra_handlers: Additional handlers to attach.

    Raises:
        ValueError: If ``level`` or ``format_style`` is unknown.
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        msg = f"unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}"
        raise ValueError(msg)
    if format_style not in LOG_FORMATS:
        msg = f"unknown log format {format_style!r}; expected one of {', '.join(LOG_FORMATS)}"
        raise ValueError(msg)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level_name)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.addFilter(TemplateSourceFilter())
    if format_style == "structured":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    package_logger.addHandler(console_handler)

    for handler in extra_handlers or ():
        package_logger.addHandler(handler)

    package_logger.propagate = False
    log_with_context(
        package_logger, logging.DEBUG, "Logging configured", level=level_name, format_style=format_style
    )


def log_with_context(logger: logging.Logger, level: int, message: str, /, *args: Any, **fields: Any) -> None:
    """Log ``message % args`` with ``fields`` attached as ``record.extra_fields``.

    The structured formatter writes the fields as top-level JSON keys; the
    simple formatter ignores them.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, *args, extra={"extra_fields": fields}, stacklevel=2)
