"""
Logging Setup
=============
structlog configuration for services embedding the auth core.

Usage:
    from learnauth_core.log_config import configure_logging

    configure_logging(service_name="learnauth-api", level="INFO")
"""

import logging

import structlog


def configure_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
):
    """
    Configure structlog for a service.

    Args:
        service_name: Name bound to every log line (e.g., "learnauth-api")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines for production, console renderer otherwise

    Returns:
        Logger bound to the service name
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog.contextvars.bind_contextvars(service=service_name)

    logger = structlog.get_logger("learnauth_core")
    logger.info("Logging configured", json_output=json_output, level=level.upper())
    return logger
