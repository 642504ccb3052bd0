"""Copying committed photos into the destination directory."""

import asyncio
import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from photo_sorter.core.item import Item, PhotoInfo
from photo_sorter.errors import CommitFailure, ErrorKind
from photo_sorter.utils.config import Config
from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)


class PhotoCopier:
    """Side-effect executor: copies one photo per commit, off the event loop."""

    def __init__(self, config: Optional[Config] = None, operations_log: Optional[Path] = None):
        """
        Initialize the copier.

        Args:
            config: Configuration instance (copy settings, operations log path)
            operations_log: Override for the operations log file; None with no
                config disables logging
        """
        self.config = config
        self.overwrite = bool(config.get("copy.overwrite", False)) if config else False
        if operations_log is not None:
            self.operations_log: Optional[Path] = operations_log
        else:
            self.operations_log = config.get_operations_log() if config else None

    async def __call__(self, item: Item, destination: Path) -> Path:
        return await self.commit(item, destination)

    async def commit(self, item: Item, destination: Path) -> Path:
        """
        Copy the item's photo into `destination`.

        Args:
            item: Item with a PhotoInfo payload
            destination: Existing destination directory

        Returns:
            Path of the copy

        Raises:
            CommitFailure: If the copy could not be made
        """
        try:
            copied = await asyncio.to_thread(self._copy, item, Path(destination))
        except CommitFailure as e:
            self._log_operation(item, destination, "failed", error=e)
            raise

        self._log_operation(item, copied, "copied")
        return copied

    def _copy(self, item: Item, destination: Path) -> Path:
        photo = item.payload
        if not isinstance(photo, PhotoInfo):
            raise CommitFailure(
                ErrorKind.IO_ERROR, f"Item {item.key} has no photo to copy", path=item.key
            )

        if not destination.is_dir():
            raise CommitFailure(
                ErrorKind.NOT_FOUND,
                f"Destination directory not found: {destination}",
                path=str(destination),
            )

        target = self._target_path(photo, destination)

        try:
            shutil.copy2(str(photo.path), str(target))
        except OSError as e:
            logger.error(f"Failed to copy {photo.path}: {e}")
            raise CommitFailure.from_os_error(e, path=str(photo.path)) from e

        logger.debug(f"Copied: {photo.path} -> {target}")
        return target

    def _target_path(self, photo: PhotoInfo, destination: Path) -> Path:
        target = destination / photo.name
        if self.overwrite:
            return target

        # Handle filename conflicts
        counter = 1
        while target.exists():
            target = destination / f"{photo.path.stem}_{counter}{photo.path.suffix}"
            counter += 1
        return target

    def _log_operation(
        self,
        item: Item,
        destination: Path,
        status: str,
        error: Optional[CommitFailure] = None,
    ) -> None:
        """
        Append one commit attempt to the operations log file.

        Args:
            item: Item that was committed
            destination: Copy path, or the destination directory on failure
            status: 'copied' or 'failed'
            error: Failure, if any
        """
        if self.operations_log is None:
            return

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "source": item.key,
            "destination": str(destination),
            "status": status,
            "error": error.kind.value if error else None,
        }

        try:
            self.operations_log.parent.mkdir(parents=True, exist_ok=True)
            with open(self.operations_log, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry) + "\n")
        except OSError as e:
            logger.warning(f"Failed to log operation: {e}")
