"""Photo source: enumerates reviewable photos in a directory."""

import os
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from photo_sorter.core.item import Item, PhotoInfo
from photo_sorter.errors import ErrorKind, LoadFailure
from photo_sorter.utils.config import Config
from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)


class PhotoSource:
    """Lists photos of a directory as review items, in file-name order."""

    # Supported photo extensions
    PHOTO_EXTENSIONS = {
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".bmp",
        ".webp",
        ".heic",
        ".heif",
        ".tiff",
        ".tif",
    }

    def __init__(self, config: Optional[Config] = None, show_progress: bool = False):
        """
        Initialize the photo source.

        Args:
            config: Configuration instance (scan settings)
            show_progress: Show progress bar while filtering files
        """
        self.config = config
        self.show_progress = show_progress
        self.recursive = bool(config.get("scan.recursive", False)) if config else False
        self.skip_hidden = bool(config.get("scan.skip_hidden", True)) if config else True

    def __call__(self, directory: Path) -> List[Item]:
        return self.list_items(directory)

    def list_items(self, directory: Path) -> List[Item]:
        """
        List the photos of a directory.

        Args:
            directory: Directory to read

        Returns:
            Items with a PhotoInfo payload, sorted by file name

        Raises:
            LoadFailure: If the directory is missing, unreadable or not a directory
        """
        directory = Path(directory)
        if not directory.exists():
            raise LoadFailure(
                ErrorKind.NOT_FOUND, f"Directory not found: {directory}", path=str(directory)
            )
        if not directory.is_dir():
            raise LoadFailure(
                ErrorKind.NOT_FOUND, f"Not a directory: {directory}", path=str(directory)
            )

        logger.info(f"Scanning directory: {directory}")

        try:
            all_files = self._discover_files(directory)
        except OSError as e:
            logger.error(f"Failed to read directory {directory}: {e}")
            raise LoadFailure.from_os_error(e, path=str(directory)) from e

        if self.show_progress:
            file_iter = tqdm(all_files, desc="Finding photos", unit="file")
        else:
            file_iter = all_files

        photos: List[PhotoInfo] = []
        for file_path in file_iter:
            if not self._is_photo_file(file_path):
                continue
            try:
                size = file_path.stat().st_size
            except OSError as e:
                # Removed between listing and stat
                logger.warning(f"Skipping unreadable file {file_path}: {e}")
                continue
            photos.append(PhotoInfo(name=file_path.name, path=file_path, size=size))

        photos.sort(key=lambda p: (p.name.lower(), str(p.path)))
        logger.info(f"Found {len(photos)} photos")
        return [Item.from_photo(photo) for photo in photos]

    def _discover_files(self, directory: Path) -> List[Path]:
        """
        Discover candidate files in a directory.

        Raises:
            OSError: If the top-level directory cannot be read
        """
        files: List[Path] = []

        if not self.recursive:
            # Non-recursive: only immediate children
            for item in directory.iterdir():
                if item.is_symlink() or not item.is_file():
                    continue
                if self.skip_hidden and self._is_hidden(item):
                    continue
                files.append(item)
            return files

        # os.walk swallows errors unless asked; surface the top-level one
        def on_error(error: OSError) -> None:
            if Path(error.filename) == directory:
                raise error
            logger.warning(f"Permission denied accessing directory: {error}")

        for root, dirs, filenames in os.walk(directory, onerror=on_error):
            root_path = Path(root)

            if self.skip_hidden:
                dirs[:] = [d for d in dirs if not self._is_hidden(root_path / d)]

            # Skip symlinks and junctions to avoid loops
            dirs[:] = [d for d in dirs if not (root_path / d).is_symlink()]

            for filename in filenames:
                file_path = root_path / filename
                if self.skip_hidden and self._is_hidden(file_path):
                    continue
                if file_path.is_symlink():
                    continue
                files.append(file_path)

        return files

    def _is_photo_file(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.PHOTO_EXTENSIONS

    def _is_hidden(self, path: Path) -> bool:
        """
        Check if a path is hidden (dot-file, or the Windows hidden attribute).

        Args:
            path: Path to check

        Returns:
            True if path is hidden
        """
        if path.name.startswith("."):
            return True

        if os.name != "nt":
            return False

        try:
            import ctypes

            FILE_ATTRIBUTE_HIDDEN = 0x02
            attrs = ctypes.windll.kernel32.GetFileAttributesW(str(path))
            return attrs != -1 and bool(attrs & FILE_ATTRIBUTE_HIDDEN)
        except Exception:
            return False
