"""Logging configuration for photo-sorter."""

import logging
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
    name: str = "photo-sorter",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    # stderr would interleave with the live review screen, so stdout it is
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(fmt=CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # More verbose in file
        file_handler.setFormatter(
            logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    return logger


def set_level(level: int) -> None:
    """
    Change the level of every photo-sorter logger already configured.

    Args:
        level: New logging level
    """
    for name in list(logging.root.manager.loggerDict):
        if name == "photo-sorter" or name.startswith("photo_sorter"):
            logger = logging.getLogger(name)
            logger.setLevel(level)
            for handler in logger.handlers:
                if not isinstance(handler, logging.FileHandler):
                    handler.setLevel(level)
