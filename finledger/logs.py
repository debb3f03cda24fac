"""Structured logging setup for finledger.

Logs go to stderr so command output on stdout stays clean.
"""

import logging
import sys

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str = "WARNING") -> None:
    """Configure structlog on top of the standard library logger.

    Args:
        level: Minimum level name; unknown names fall back to WARNING.
    """
    level_name = level.upper() if level.upper() in LOG_LEVELS else "WARNING"

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=getattr(logging, level_name), force=True)

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
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
