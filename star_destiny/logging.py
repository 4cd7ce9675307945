"""Structured logging configuration for Star Destiny.

Provides a single `configure()` function that sets up structlog with:
- JSON output by default (STAR_DESTINY_LOG_FORMAT=json)
- Colored console output for interactive use (STAR_DESTINY_LOG_FORMAT=console)
- Configurable log level via STAR_DESTINY_LOG_LEVEL environment variable
- Context variable merging so bound fields (device_id, sink, ...) propagate
- Standard library integration so httpx and friends emit structured output
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog

# Stores the service name set by configure() so reset_context() can restore it.
_configured_service_name: str | None = None


def _add_service_name(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Structlog processor that adds the service name to every log entry."""
    if "_service_name" in event_dict:
        event_dict["service"] = event_dict.pop("_service_name")
    return event_dict


def configure(
    service_name: str,
    stream: TextIO | None = None,
    default_level: str = "INFO",
    default_format: str = "json",
    cache_loggers: bool = True,
) -> None:
    """Configure structlog for a Star Destiny process.

    Args:
        service_name: Identifier for this process (e.g. "cli").
        stream: Where log lines go. Defaults to stdout; the CLI passes
            stderr so logs never mix with command output.
        default_level: Level used when STAR_DESTINY_LOG_LEVEL is unset.
        default_format: Format used when STAR_DESTINY_LOG_FORMAT is unset.
        cache_loggers: Cache bound loggers on first use. Short-lived
            processes that reconfigure the output stream pass False.

    Environment Variables:
        STAR_DESTINY_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR,
            CRITICAL). Defaults to INFO.
        STAR_DESTINY_LOG_FORMAT: "json" (default) for JSON lines, "console"
            for colored human-readable output.
    """
    log_level_name = os.environ.get("STAR_DESTINY_LOG_LEVEL", default_level).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    log_format = os.environ.get("STAR_DESTINY_LOG_FORMAT", default_format).lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service_name,
    ]

    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=cache_loggers,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # httpx logs every request at INFO; keep it out of normal output
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    global _configured_service_name
    _configured_service_name = service_name
    structlog.contextvars.bind_contextvars(_service_name=service_name)


def reset_context(**extra: str) -> None:
    """Clear structlog contextvars and re-apply the service name.

    Args:
        **extra: Additional context variables to bind (e.g. device_id).
    """
    structlog.contextvars.clear_contextvars()
    if _configured_service_name:
        structlog.contextvars.bind_contextvars(_service_name=_configured_service_name)
    if extra:
        structlog.contextvars.bind_contextvars(**extra)
