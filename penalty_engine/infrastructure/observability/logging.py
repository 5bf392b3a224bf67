"""Structured logging configuration with structlog.

Production emits one JSON object per line for log aggregation; any other
environment gets colored console output.

Log entry format (production):
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "sanction_applied",
        "correlation_id": "uuid",
        "service": "SanctionLedgerService",
        "component": "penalty",
        ...operation context
    }

Usage:
    from penalty_engine.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from penalty_engine.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level(override: str | None = None) -> int:
    """Resolve the log level from ``override`` or the LOG_LEVEL variable."""
    level_name = (override or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(
    environment: str = "production", log_level: str | None = None
) -> None:
    """Configure structlog once at startup.

    Args:
        environment: 'production' for JSON output, anything else for console.
        log_level: Level name overriding LOG_LEVEL (e.g. "DEBUG").
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
