"""structlog setup: JSON lines in production, console rendering for local runs.

Called once at process start (HTTP app lifespan, CLI entry point).
"""

from __future__ import annotations

import logging
import sys

import structlog

from legal_search.domain.errors import ConfigurationError


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {level!r}")

    # structlog renders, stdlib logging writes; uvicorn and qdrant-client share the handler
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
