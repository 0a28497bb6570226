"""Structured logging.

All logging via structlog. Modules call structlog.get_logger() at import;
setup_logging() decides level and rendering for the whole process.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog

LogFormat = Literal["console", "json"]


def setup_logging(level: str = "INFO", fmt: LogFormat = "console") -> None:
    """Configure structlog over the stdlib logging bridge.

    Args:
        level: Root log level name (DEBUG, INFO, ...).
        fmt: "console" for colored dev output, "json" for one JSON object per line.

    Raises:
        ValueError: Unknown level or format.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level: {level!r}")

    renderer: Any
    match fmt:
        case "json":
            renderer = structlog.processors.JSONRenderer()
        case "console":
            renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        case _:
            raise ValueError(f"unknown log format: {fmt!r}")

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    exposure_logger = logging.getLogger("exposure")
    exposure_logger.handlers.clear()
    exposure_logger.addHandler(handler)
    exposure_logger.setLevel(numeric_level)
    exposure_logger.propagate = False
