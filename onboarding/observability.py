"""
Structured logging setup

Call configure_logging() once at startup, then use structlog normally:

    log = structlog.get_logger(__name__)
    log.info("session_started", local_id=local_id)
"""

import logging
from typing import List

import structlog
from structlog.typing import Processor


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure structlog for the service

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ...)
        fmt: 'json' for machine-readable output, anything else for console
    """
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
