"""
Logging configuration for proctop.

The terminal belongs to the UI, so log records only go to a file when one
is requested. Without a file, a NullHandler keeps the screen clean.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int | str = logging.WARNING, log_file: Path | None = None) -> logging.Logger:
    """
    Configure and return the ``proctop`` package logger.

    Args:
        level: Logging level name or number (default: WARNING).
        log_file: Optional file path for log output.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("proctop")
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates on repeated setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)
    else:
        logger.addHandler(logging.NullHandler())

    logger.propagate = False
    return logger
