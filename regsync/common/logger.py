"""Logging infrastructure for regsync.

Console output for every run, plus an optional rotating log file. Module
loggers are children of "regsync" and inherit the handlers set up here.
"""

import logging
import logging.handlers
import os
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Rotate at 10MB, keep 5 backups
MAX_LOG_BYTES = 10485760
LOG_BACKUP_COUNT = 5


def setup_logger(name: str, config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Set up a logger from the logging section of the sync configuration.

    Args:
        name: Logger name (typically "regsync")
        config: Level, log directory and file logging switch

    Returns:
        Configured logger instance

    Raises:
        ValueError: If the configured level is not a logging level name
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(name)

    level_upper = config.level.upper()
    if not isinstance(getattr(logging, level_upper, None), int):
        raise ValueError(
            f"Invalid log level: {config.level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if config.file_logging:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(config.log_dir, f"{name}.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get an existing logger by name."""
    return logging.getLogger(name)
