# app/core/logging_config.py
import logging
import sys

import structlog

from app.config import settings


def setup_logging() -> None:
    """
    Configure structlog + standard logging.
    Logs go to stdout as JSON so the platform log collector can pick them up.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Global logger, importable everywhere
logger = structlog.get_logger("freight-quotes")
