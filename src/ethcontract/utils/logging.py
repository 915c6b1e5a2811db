"""
Structured logging for ethcontract.

Thin layer over the standard ``logging`` module. Modules obtain a logger
with ``get_logger(__name__)`` and pass structured context through
``extra={...}``; the default formatter renders those fields as ``key=value``
pairs after the message.

Example:
    >>> from ethcontract.utils.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> _logger = get_logger(__name__)
    >>> _logger.info("Batch flushed", extra={"size": 3})
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
import logging
import sys
from typing import Any, Dict, Iterator, Optional, TextIO, Union

ROOT_LOGGER_NAME = "ethcontract"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "ethcontract_log_context", default={}
)


class StructuredFormatter(logging.Formatter):
    """Formatter that appends ``extra`` and LogContext fields as key=value pairs."""

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt or "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt)

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = dict(_context.get())
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                fields[key] = value
        if not fields:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        return f"{base} | {rendered}"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger in the ethcontract namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger whose records propagate to the ``ethcontract`` root logger.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    stream: Optional[TextIO] = None,
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    Attach a structured stream handler to the ``ethcontract`` root logger.

    Calling this more than once replaces the previously installed handler.

    Args:
        level: Logging level name or number.
        stream: Output stream (defaults to stderr).
        fmt: Optional format string for the message prefix.

    Returns:
        The configured root logger.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_ethcontract_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter(fmt))
    handler._ethcontract_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return root


def set_level(level: Union[int, str]) -> None:
    """Set the level of the ``ethcontract`` root logger."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def disable_logging() -> None:
    """Silence all ethcontract loggers."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.CRITICAL + 1)


def enable_debug() -> None:
    """Shortcut for ``configure_logging(level="DEBUG")``."""
    configure_logging(level=logging.DEBUG)


class LogContext:
    """
    Bind fields to every record logged inside a block (task-local).

    Example:
        >>> with LogContext(tx_hash="0xabc"):
        ...     _logger.info("Polling receipt")
    """

    def __init__(self, **fields: Any) -> None:
        self._fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "LogContext":
        merged = {**_context.get(), **self._fields}
        self._token = _context.set(merged)
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Functional form of LogContext."""
    with LogContext(**fields):
        yield


def current_context() -> Dict[str, Any]:
    """Return a copy of the fields bound by enclosing LogContext blocks."""
    return dict(_context.get())
