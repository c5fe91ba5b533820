from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(verbose: bool = False, level: str | None = None) -> None:
    """Route structlog output to stderr so stdout only carries reports."""
    if verbose:
        level_value = logging.DEBUG
    else:
        level_value = logging.getLevelName((level or "WARNING").upper())
        if not isinstance(level_value, int):
            level_value = logging.WARNING

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
