"""
Logging Configuration
=====================

Sets up the logger for the 'femdyn' namespace. Library modules only create
module-level loggers; applications and scripts call setup_logging() once.
"""

import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the 'femdyn' logger with a stdout handler.

    Args:
        level: logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: optional path to also write the log to

    Returns:
        the configured logger
    """
    logger = logging.getLogger("femdyn")
    logger.setLevel(level)

    # Avoid duplicate output when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
