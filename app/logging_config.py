"""
Logging configuration.

Configures loguru sinks for workers, the scheduler and scripts.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(component: str = "rewards") -> None:
    """
    Configure logger with stderr and rotating file sinks.

    Args:
        component: Name shown in the startup line
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "{extra[service]} | "
            "<level>{message}</level>"
        ),
        enqueue=True,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
            serialize=not settings.debug,
            enqueue=True,
        )

    # Records not bound to a service still render the format above
    logger.configure(extra={"service": component})

    logger.info(f"Logging configured for {component} ({settings.environment})")
