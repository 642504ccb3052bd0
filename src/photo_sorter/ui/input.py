"""Mapping raw key presses and swipe gestures to review intents."""

from typing import Dict, Iterable, Optional, Set, Tuple

from photo_sorter.core.engine import Direction
from photo_sorter.utils.config import Config

# What click.getchar() returns for named keys (POSIX escapes, Windows scan codes)
KEY_SEQUENCES: Dict[str, Tuple[str, ...]] = {
    "right": ("\x1b[C", "\x1bOC", "\xe0M", "\x00M"),
    "left": ("\x1b[D", "\x1bOD", "\xe0K", "\x00K"),
    "up": ("\x1b[A", "\x1bOA", "\xe0H", "\x00H"),
    "down": ("\x1b[B", "\x1bOB", "\xe0P", "\x00P"),
    "escape": ("\x1b",),
    "space": (" ",),
    "enter": ("\r", "\n"),
}


def _expand(names: Iterable[str]) -> Set[str]:
    keys: Set[str] = set()
    for name in names:
        lowered = name.lower()
        if lowered in KEY_SEQUENCES:
            keys.update(KEY_SEQUENCES[lowered])
        else:
            keys.add(lowered)
    return keys


class KeyMap:
    """Resolves raw key presses to a Direction or a quit request."""

    def __init__(
        self,
        forward: Iterable[str] = ("right", "d"),
        backward: Iterable[str] = ("left", "a"),
        quit: Iterable[str] = ("q",),
    ):
        self._forward = _expand(forward)
        self._backward = _expand(backward)
        self._quit = _expand(quit)

        clash = (self._forward & self._backward) | ((self._forward | self._backward) & self._quit)
        if clash:
            raise ValueError(f"Keys bound to more than one action: {sorted(clash)}")

    @classmethod
    def from_config(cls, config: Config) -> "KeyMap":
        return cls(
            forward=config.get_keys("forward") or ("right", "d"),
            backward=config.get_keys("backward") or ("left", "a"),
            quit=config.get_keys("quit") or ("q",),
        )

    def resolve(self, key: str) -> Optional[Direction]:
        """Direction bound to `key`, or None if it is not a decision key."""
        key = self._normalize(key)
        if key in self._forward:
            return Direction.FORWARD
        if key in self._backward:
            return Direction.BACKWARD
        return None

    def is_quit(self, key: str) -> bool:
        return self._normalize(key) in self._quit

    @staticmethod
    def _normalize(key: str) -> str:
        # Letters are matched case-insensitively; escape sequences as-is
        return key.lower() if len(key) == 1 else key


class SwipeRecognizer:
    """
    Turns a finished horizontal drag into a Direction.

    A swipe counts when it travels at least `threshold` horizontally and more
    horizontally than vertically. Right is forward, left is backward.
    The terminal app reads keys only; front ends with pointer input feed
    drags through ReviewApp.on_drag().
    """

    def __init__(self, threshold: float = 0.25):
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.threshold = threshold

    def recognize(self, dx: float, dy: float = 0.0) -> Optional[Direction]:
        if abs(dx) < self.threshold or abs(dx) <= abs(dy):
            return None
        return Direction.FORWARD if dx > 0 else Direction.BACKWARD
