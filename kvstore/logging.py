"""Structured JSON logging for kvstore.

Store events go to stderr as one JSON object per line, so ``kvctl`` output
on stdout stays machine-readable. Every event carries the package version,
and context bound with ``bind_context`` (the store file, the CLI command)
is merged into each event logged from the same thread.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _add_version(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    from kvstore import __version__

    event_dict.setdefault("kvstore_version", __version__)
    return event_dict


def configure_logging(log_level: str = "WARNING") -> None:
    """Send store events to stderr as JSON, dropping those below ``log_level``.

    Unknown level names fall back to WARNING. Loggers are not cached, so a
    later call (or ``structlog.reset_defaults``) applies to stores that
    already exist.
    """
    level = _LEVEL_MAP.get(log_level.upper(), logging.WARNING)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_version,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(**initial_context: Any) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(**initial_context)


def bind_context(store_file: str | None = None, **extra: Any) -> None:
    """Bind context variables merged into every following event."""
    ctx: dict[str, Any] = {}
    if store_file is not None:
        ctx["store_file"] = store_file
    ctx.update(extra)
    structlog.contextvars.bind_contextvars(**ctx)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
