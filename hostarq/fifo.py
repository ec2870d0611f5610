"""Bounded first-in first-out queue shared between producer and consumer threads."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, TypeVar

__all__ = ["FifoFullError", "FifoEmptyError", "Fifo"]

T = TypeVar("T")


class FifoFullError(RuntimeError):
    """Raised by a non-blocking push when the queue holds no free element."""


class FifoEmptyError(RuntimeError):
    """Raised by a non-blocking read when the queue holds no element."""


class Fifo(Generic[T]):
    """A fixed-capacity queue whose blocking operations wait for room or data."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque()
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def reset(self) -> None:
        """Discard every queued element."""
        with self._cond:
            self._items.clear()
            self._cond.notify_all()

    def push(self, item: T) -> None:
        """Append ``item``, waiting while the queue is full."""
        with self._cond:
            while len(self._items) >= self.capacity:
                self._cond.wait()
            self._items.append(item)
            self._cond.notify_all()

    def pop(self) -> T:
        """Remove and return the oldest element, waiting while the queue is empty."""
        with self._cond:
            while not self._items:
                self._cond.wait()
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def front(self) -> T:
        """Return the oldest element without removing it."""
        with self._cond:
            if not self._items:
                raise FifoEmptyError("fifo is empty")
            return self._items[0]

    def try_push(self, item: T) -> None:
        """Append ``item`` or raise :class:`FifoFullError` if there is no room."""
        with self._cond:
            if len(self._items) >= self.capacity:
                raise FifoFullError("fifo is full")
            self._items.append(item)
            self._cond.notify_all()

    def try_pop(self) -> T:
        """Remove and return the oldest element or raise :class:`FifoEmptyError`."""
        with self._cond:
            if not self._items:
                raise FifoEmptyError("fifo is empty")
            item = self._items.popleft()
            self._cond.notify_all()
            return item