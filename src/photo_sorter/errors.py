"""Error types surfaced by the review engine and its collaborators."""

import errno
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of an external failure, shown to the user as-is."""

    NOT_FOUND = "NotFound"
    PERMISSION_DENIED = "PermissionDenied"
    DISK_FULL = "DiskFull"
    IO_ERROR = "IOError"

    @classmethod
    def from_os_error(cls, error: OSError) -> "ErrorKind":
        """Classify an OSError raised by the filesystem."""
        if isinstance(error, FileNotFoundError):
            return cls.NOT_FOUND
        if isinstance(error, PermissionError):
            return cls.PERMISSION_DENIED
        if error.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)):
            return cls.DISK_FULL
        return cls.IO_ERROR


class PhotoSorterError(Exception):
    """Base class for photo-sorter errors."""


class ExternalFailure(PhotoSorterError):
    """A recoverable failure reported by an external collaborator."""

    def __init__(self, kind: ErrorKind, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.path = path

    @classmethod
    def from_os_error(cls, error: OSError, path: Optional[str] = None):
        return cls(ErrorKind.from_os_error(error), str(error), path=path)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class LoadFailure(ExternalFailure):
    """The item source could not enumerate a directory."""


class CommitFailure(ExternalFailure):
    """The side-effect executor rejected a commit."""


class AnimatorBusyError(PhotoSorterError):
    """A transition was started while another one is still running."""
