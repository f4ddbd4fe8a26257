"""
Iris Logging
============
structlog setup for services embedding iris-core.

Usage:
    from iris_core.log import configure_logging

    configure_logging(level="INFO", json_output=True)
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name
        json_output: Render JSON lines (True) or human-readable console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
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
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def mask_recipient(recipient: str) -> str:
    """Mask an email address for logging (``a***@example.com``)."""
    if "@" not in recipient:
        return recipient[:1] + "***" if recipient else ""
    local, domain = recipient.split("@", 1)
    return f"{local[:1]}***@{domain}"
