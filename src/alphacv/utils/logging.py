"""Structured logging for alphacv, built on structlog."""

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL_ENV = "ALPHACV_LOG_LEVEL"


def configure_logging(
    level: str | None = None,
    json_output: bool = False,
) -> None:
    """
    Configure structlog for the CLI and library use.

    Logs go to stderr so that tables printed on stdout stay clean.

    Args:
        level: Log level name. Falls back to $ALPHACV_LOG_LEVEL, then WARNING.
        json_output: Render one JSON object per event instead of console text.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    log_level = getattr(logging, level_name, logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Resolve sys.stderr per call so redirected streams are honoured
        logger_factory=lambda *_: structlog.PrintLogger(sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key/value pairs to every log event inside a ``with`` block.

    Example:
        with log_context(penalty="lasso", fold=2):
            log.debug("Fitting fold")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
