"""Thread synchronisation primitives: atomics, locks, semaphores and signal masks."""

from __future__ import annotations

import threading
from typing import List, Optional

__all__ = [
    "AtomicInt",
    "Mutex",
    "SignalVar",
    "Semaphore",
    "TicketLock",
    "QueueLock",
]


def _wrap32(value: int) -> int:
    """Reduce ``value`` to a signed 32-bit integer."""
    value &= 0xFFFF_FFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


class AtomicInt:
    """A signed 32-bit integer whose operations are atomic."""

    def __init__(self, value: int = 0) -> None:
        self._value = _wrap32(value)
        self._lock = threading.Lock()

    def load(self) -> int:
        with self._lock:
            return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = _wrap32(value)

    def compare_exchange(self, expected: int, new: int) -> int:
        """Set the value to ``new`` if it equals ``expected``; return the previous value."""
        with self._lock:
            before = self._value
            if before == _wrap32(expected):
                self._value = _wrap32(new)
            return before

    def exchange(self, new: int) -> int:
        """Set the value to ``new`` and return the previous value."""
        with self._lock:
            before = self._value
            self._value = _wrap32(new)
            return before

    def increment(self) -> int:
        """Add one and return the new value."""
        with self._lock:
            self._value = _wrap32(self._value + 1)
            return self._value

    def decrement(self) -> int:
        """Subtract one and return the new value."""
        with self._lock:
            self._value = _wrap32(self._value - 1)
            return self._value

    def __repr__(self) -> str:
        return f"AtomicInt({self.load()})"


class Mutex:
    """A mutual exclusion lock that may also be used as a context manager."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def lock(self) -> None:
        self._lock.acquire()

    def try_lock(self) -> bool:
        """Take the lock if it is free; tell whether it was taken."""
        return self._lock.acquire(blocking=False)

    def unlock(self) -> None:
        try:
            self._lock.release()
        except RuntimeError:
            raise RuntimeError("unlock of a mutex that is not locked") from None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> "Mutex":
        self.lock()
        return self

    def __exit__(self, *args: object) -> None:
        self.unlock()


class SignalVar:
    """A set of signal bits that threads can raise and wait for."""

    def __init__(self) -> None:
        self._bits = 0
        self._cond = threading.Condition()

    @property
    def value(self) -> int:
        with self._cond:
            return self._bits

    def wait(self, mask: int) -> int:
        """Block until a bit of ``mask`` is set; clear and return those bits."""
        with self._cond:
            while not self._bits & mask:
                self._cond.wait()
            observed = self._bits & mask
            self._bits ^= observed
            return observed

    def test(self, mask: int) -> int:
        """Clear and return the bits of ``mask`` that are set, without blocking."""
        with self._cond:
            observed = self._bits & mask
            self._bits ^= observed
            return observed

    def signal(self, mask: int, howmany: Optional[int] = None) -> None:
        """Set the bits of ``mask`` and wake ``howmany`` waiters (all if None)."""
        with self._cond:
            self._bits |= mask
            if howmany is None:
                self._cond.notify_all()
            else:
                self._cond.notify(howmany)


class Semaphore:
    """A counting semaphore."""

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._cond = threading.Condition()

    @property
    def value(self) -> int:
        with self._cond:
            return self._value

    def up(self) -> None:
        with self._cond:
            self._value += 1
            if self._value > 0:
                self._cond.notify()

    def down(self) -> None:
        """Block until the count is positive, then decrease it."""
        with self._cond:
            while self._value <= 0:
                self._cond.wait()
            self._value -= 1


class TicketLock:
    """A fair lock granting access in the order tickets were drawn."""

    def __init__(self) -> None:
        self._ticket_cnt = 0
        self._curr_ticket = 0
        self._cond = threading.Condition()

    def lock(self) -> int:
        """Draw a ticket and wait for its turn; return the ticket."""
        with self._cond:
            ticket = self._ticket_cnt
            self._ticket_cnt += 1
            while self._curr_ticket != ticket:
                self._cond.wait()
            return ticket

    def unlock(self) -> None:
        with self._cond:
            if self._curr_ticket >= self._ticket_cnt:
                raise RuntimeError("unlock of a ticket lock that is not locked")
            self._curr_ticket += 1
            self._cond.notify_all()

    def __enter__(self) -> "TicketLock":
        self.lock()
        return self

    def __exit__(self, *args: object) -> None:
        self.unlock()


class QueueLock:
    """A lock handing access around a ring of ``places`` waiting slots."""

    def __init__(self, places: int) -> None:
        if places <= 0:
            raise ValueError("places must be positive")
        self.places = places
        self._place_cnt = 0
        # True marks a place that has to wait; the first place may enter.
        self._blocked: List[bool] = [index != 0 for index in range(places)]
        self._cond = threading.Condition()

    def lock(self) -> int:
        """Take the next place, wait until it is released and return it."""
        with self._cond:
            place = self._place_cnt
            self._place_cnt = (self._place_cnt + 1) % self.places
            while self._blocked[place]:
                self._cond.wait()
            return place

    def unlock(self, place: int) -> None:
        """Leave ``place`` and let the next place enter."""
        if not 0 <= place < self.places:
            raise ValueError(f"place {place} out of range")
        with self._cond:
            self._blocked[place] = True
            self._blocked[(place + 1) % self.places] = False
            self._cond.notify_all()