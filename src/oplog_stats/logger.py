"""Structured logging configuration using *structlog*."""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "WARNING") -> None:
    """Configure *structlog* for a scan run.

    The CLI calls this once, after settings are resolved.  Stdout is reserved
    for the report (tables, JSON or CSV), so every event goes to stderr.  The
    default level hides the ``scan.*`` and ``source.*`` progress events; pass
    ``INFO`` to see them, ``DEBUG`` to also see each skipped record.
    """
    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.WARNING

    # the console renderer formats exceptions itself
    if sys.stderr.isatty():
        renderers: list = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
