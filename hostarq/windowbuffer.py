"""Bounded first-in first-out buffer holding the packets of a window."""

from collections import deque
from typing import Deque, Generic, Iterator, TypeVar

__all__ = ["WindowBufferError", "WindowBuffer"]

T = TypeVar("T")


class WindowBufferError(RuntimeError):
    """Raised on access outside the valid part of a window buffer."""


class WindowBuffer(Generic[T]):
    """A fixed-capacity queue of window entries."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def space(self) -> int:
        """Number of entries that can still be pushed."""
        return self.capacity - len(self._items)

    def empty(self) -> bool:
        return not self._items

    def full(self) -> bool:
        return len(self._items) >= self.capacity

    def at(self, index: int) -> T:
        """Return the entry ``index`` places from the front."""
        if not 0 <= index < len(self._items):
            raise WindowBufferError("access to out-of-window element")
        return self._items[index]

    def pop_front(self) -> T:
        """Remove and return the front entry."""
        if not self._items:
            raise WindowBufferError("nothing to pop")
        return self._items.popleft()

    def drop_front(self, count: int = 0) -> None:
        """Remove ``count`` entries from the front."""
        for _ in range(count):
            self.pop_front()

    def push_back(self, item: T) -> None:
        """Append an entry at the back."""
        if self.full():
            raise WindowBufferError("window full, can't push")
        self._items.append(item)