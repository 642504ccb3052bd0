"""Utility functions for configuration and logging."""

from photo_sorter.utils.config import Config
from photo_sorter.utils.logger import set_level, setup_logger

__all__ = ["Config", "set_level", "setup_logger"]
