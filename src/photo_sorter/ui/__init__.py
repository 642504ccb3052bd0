"""User interface components (terminal rendering and input)."""

from photo_sorter.ui.app import ReviewApp
from photo_sorter.ui.input import KeyMap, SwipeRecognizer
from photo_sorter.ui.review import PhotoMetadata, ReviewUI

__all__ = ["KeyMap", "PhotoMetadata", "ReviewApp", "ReviewUI", "SwipeRecognizer"]
