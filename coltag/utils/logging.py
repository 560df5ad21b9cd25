"""
coltag Logging Configuration

Centralized logging setup for all coltag modules.

Library modules only create loggers; handlers are attached by
setup_logging(), called from the host application.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging for coltag.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path for log output
        format_string: Optional custom format string

    Returns:
        The configured "coltag" logger
    """
    if format_string is None:
        format_string = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger("coltag")
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)} level")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a coltag module.

    Args:
        name: Module name (will be prefixed with 'coltag.')

    Returns:
        Logger instance
    """
    if not name.startswith("coltag"):
        name = f"coltag.{name}"
    return logging.getLogger(name)
