"""structlog configuration."""

import logging
from typing import Optional

import structlog

from .config import settings


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Route structlog through the stdlib logging module.

    Args:
        level: Logging level name, defaults to settings.log_level
        fmt: "json" for machine-readable lines, "console" for development;
            defaults to settings.log_format
    """
    level = level or settings.log_level
    fmt = fmt or settings.log_format
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))

    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    elif fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        raise ValueError(f"Unknown log format: {fmt}")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
