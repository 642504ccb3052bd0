"""Core review engine, transition animator and photo I/O."""

from photo_sorter.core.animator import Pose, TransitionAnimator
from photo_sorter.core.copier import PhotoCopier
from photo_sorter.core.engine import Direction, Effect, Phase, ReviewEngine, ReviewSnapshot
from photo_sorter.core.item import Item, PhotoInfo, Queue
from photo_sorter.core.scanner import PhotoSource

__all__ = [
    "Direction",
    "Effect",
    "Item",
    "Phase",
    "PhotoCopier",
    "PhotoInfo",
    "PhotoSource",
    "Pose",
    "Queue",
    "ReviewEngine",
    "ReviewSnapshot",
    "TransitionAnimator",
]
