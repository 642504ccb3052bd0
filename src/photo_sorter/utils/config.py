"""Configuration management for photo-sorter."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)


class Config:
    """Manages user configuration and settings."""

    DEFAULT_CONFIG_DIR = Path.home() / ".photo-sorter"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"
    OPERATIONS_LOG_NAME = "operations.log"

    DEFAULT_SETTINGS = {
        "destination_directory": None,
        "scan": {"recursive": False, "skip_hidden": True},
        "keys": {
            "forward": ["right", "d"],
            "backward": ["left", "a"],
            "quit": ["q"],
        },
        "animation": {
            "tension": 200.0,
            "friction": 50.0,
            "mass": 1.0,
            "precision": 0.01,
            "frame_interval": 1 / 60,
        },
        "display": {"stack_depth": 3},
        "copy": {"overwrite": False},
    }

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to config file (default: ~/.photo-sorter/config.json)
        """
        self.config_file = Path(config_file) if config_file else self.DEFAULT_CONFIG_FILE
        self.settings: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from file or create with defaults."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    stored = json.load(f)
                self.settings = self._merge_defaults(stored)
                logger.debug(f"Loaded configuration from {self.config_file}")
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid config file: {e}. Using defaults.")
                self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        else:
            logger.info("No config file found. Creating with defaults.")
            self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
            self.save()

    def save(self) -> None:
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self.settings, f, indent=2)
        logger.debug(f"Saved configuration to {self.config_file}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation, e.g., 'animation.tension')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.settings
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        self.save()

    def get_keys(self, action: str) -> List[str]:
        """Key names bound to an action ('forward', 'backward' or 'quit')."""
        return list(self.get(f"keys.{action}", []))

    def get_destination(self) -> Optional[Path]:
        """Last destination directory used, if any."""
        destination = self.get("destination_directory")
        return Path(destination) if destination else None

    def remember_destination(self, destination: Path) -> None:
        """Store the destination directory as the default for the next run."""
        self.set("destination_directory", str(destination))

    def get_operations_log(self) -> Path:
        """Get the operations log file path."""
        return self.config_file.parent / self.OPERATIONS_LOG_NAME

    def _merge_defaults(self, stored: Dict[str, Any]) -> Dict[str, Any]:
        """Fill settings missing from an older config file with defaults."""
        merged = copy.deepcopy(self.DEFAULT_SETTINGS)
        for key, value in stored.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key].update(value)
            else:
                merged[key] = value
        return merged
