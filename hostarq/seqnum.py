"""Sequence number arithmetic with wrap-around at a fixed frame count."""

__all__ = ["next_seq", "in_window", "dist_window"]


def next_seq(seq: int, max_frames: int) -> int:
    """Return the sequence number following ``seq``, wrapping at ``max_frames``."""
    return (seq + 1) % max_frames


def in_window(x: int, a: int, b: int, max_frames: int) -> bool:
    """Tell whether ``x`` lies in the half-open window ``(a, b]``.

    ``b`` is reduced modulo ``max_frames``; the window may wrap around.
    An empty window (``a == b % max_frames``) contains nothing.
    """
    bc = b % max_frames
    if a == bc:
        return False
    if a < bc:
        return a < x <= bc
    return a < x or x <= bc


def dist_window(x: int, a: int, max_frames: int) -> int:
    """Return the distance from window start ``a`` to sequence number ``x``."""
    if a < x:
        return x - a
    return x + (max_frames - a)