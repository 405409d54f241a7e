"""Structured logging configuration using structlog.

The console process logs JSON lines to stderr by default; interactive CLI
sessions switch to structlog's human-readable console renderer.
"""

from __future__ import annotations

import logging
import sys
from typing import cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def setup_logging(level: str = "info", json_output: bool = True) -> None:
    """Configure structlog output on stderr.

    Args:
        level: Minimum log level name (``debug``, ``info``, ``warning``, ``error``).
        json_output: Render JSON lines when True, coloured key/value text otherwise.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: Processor = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> FilteringBoundLogger:
    """Get a logger bound with a component name."""
    return cast(FilteringBoundLogger, structlog.get_logger(component=component))
