"""Reviewable items and the queue they are reviewed in."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class PhotoInfo:
    """Payload of a photo item: what the display and the copy need."""

    name: str
    path: Path
    size: int  # bytes


@dataclass(frozen=True)
class Item:
    """One reviewable unit with a stable identity and an opaque payload."""

    key: str
    payload: Any = None

    @classmethod
    def from_photo(cls, photo: PhotoInfo) -> "Item":
        """Build an item keyed by the photo's path."""
        return cls(key=str(photo.path), payload=photo)


class Queue:
    """
    Ordered, immutable sequence of items.

    Insertion order is review order. A reload builds a new Queue instead of
    changing this one, so a position into it stays meaningful.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Item] = ()):
        self._items: Tuple[Item, ...] = tuple(items)
        keys = [item.key for item in self._items]
        if len(set(keys)) != len(keys):
            raise ValueError("Queue items must have unique keys")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Item:
        return self._items[index]

    def __repr__(self) -> str:
        return f"Queue({len(self._items)} items)"

    def get(self, position: int) -> Optional[Item]:
        """Item at position, or None past the end."""
        if 0 <= position < len(self._items):
            return self._items[position]
        return None

    def window(self, start: int, count: int) -> Tuple[Item, ...]:
        """Up to `count` items starting at `start`."""
        if count <= 0:
            return ()
        return self._items[start:start + count]
