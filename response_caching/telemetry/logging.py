"""Structured logging configuration.

Configures structlog with JSON output in production and a readable
console renderer in development. The caching layer only ever logs through
``structlog.get_logger(__name__)``, so hosts that already configure
structlog can skip this module entirely.

Event names are dotted, e.g. ``caching.not_modified``,
``caching.backend_error``, ``cache.memory.pruned``.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

from response_caching.config import CachingSettings, get_settings


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structured logging for the host process.

    Args:
        json_logs: Use JSON format (True for production, False for dev)
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: CachingSettings | None = None) -> None:
    """Configure logging from ``RESPONSE_CACHING_JSON_LOGS``/``_LOG_LEVEL``."""
    if settings is None:
        settings = get_settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
