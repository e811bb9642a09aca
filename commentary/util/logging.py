"""Logging configuration for the library."""

import logging
import sys

from commentary.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure stdlib logging.

    Sets the root level from the environment and quiets the Mongo driver.

    Args:
        settings: Library settings
    """
    # Determine log level based on environment
    if settings.debug:
        level = logging.DEBUG
    elif settings.environment == "test":
        level = logging.WARNING
    else:
        level = logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )

    # pymongo logs every command and heartbeat at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    # Our library loggers stay at the configured level
    logging.getLogger("commentary").setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging configured: environment={settings.environment}, level={logging.getLevelName(level)}"
    )
