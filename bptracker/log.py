"""Structured logging setup shared by every component."""

import logging
from typing import Literal

import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(
    level: LogLevel | None = None, fmt: Literal["json", "console"] = "json"
) -> None:
    """Configure structlog on top of stdlib logging.

    The root level is only touched when ``level`` is given, so the import-time
    call leaves whatever the host application configured.
    """
    logging.basicConfig(format="%(message)s")
    if level is not None:
        logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger("bptracker")
