"""
Listener Initialization - Logging Module.

Configures loguru logger for the deposit listener.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str = "logs/deposit_listener.log") -> None:
    """Configure console and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        log_file,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )
