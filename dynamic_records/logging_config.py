"""
Structured logging setup.

Modules log through ``structlog.get_logger()`` with snake_case event names
and keyword context; this module wires the processor chain once per process.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import structlog

from .config import Settings, get_settings


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # sys.stderr is looked up on every call, not at configure time
    return structlog.PrintLogger(sys.stderr)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure stdlib logging and structlog from settings.

    ``log_format`` selects the renderer: "json" for machine-readable lines,
    anything else for the console renderer.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if settings.log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
