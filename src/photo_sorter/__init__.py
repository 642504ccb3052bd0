"""
Photo Sorter - step through a folder of photos and keep the ones you want.

Each photo is decided once: saved (copied to a destination directory) or
discarded. A review engine makes sure every decision finishes its card
animation and its copy before the next one starts.
"""

__version__ = "0.1.0"
__author__ = "Photo Sorter Contributors"

from photo_sorter.core.copier import PhotoCopier
from photo_sorter.core.engine import Direction, ReviewEngine
from photo_sorter.core.scanner import PhotoSource

__all__ = ["Direction", "PhotoCopier", "PhotoSource", "ReviewEngine", "__version__"]
