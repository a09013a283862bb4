"""Centralised logging configuration with JSON output."""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, TextIO

import structlog

from .config import settings


def _configure_structlog(level: int) -> None:
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Initialise stdlib + structlog JSON logging.

    Replaces any root handlers already installed, so calling it again with a
    new level takes effect. Log lines go to stderr unless ``stream`` is given.
    """

    numeric_level = getattr(logging, (level or settings.log_level).upper(), logging.WARNING)
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=numeric_level,
        force=True,
    )
    _configure_structlog(numeric_level)


def get_logger(name: str, **initial_values: Dict[str, Any]) -> structlog.stdlib.BoundLogger:
    """Return a bound structured logger.

    Configuration is left to the application (the CLI calls
    :func:`configure_logging`).
    """

    logger = structlog.get_logger(name)
    if initial_values:
        return logger.bind(**initial_values)
    return logger


__all__ = ["configure_logging", "get_logger"]
