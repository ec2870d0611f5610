"""Sliding window bookkeeping for the sending and receiving side of the ARQ."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import List, Optional

__all__ = [
    "WindowSide",
    "ArqFrame",
    "FrameSlot",
    "OutOfWindowError",
    "SlotBusyError",
    "MaxTransmissionsError",
    "SlidingWindow",
]

_U32 = 0xFFFF_FFFF
_U64 = 0xFFFF_FFFF_FFFF_FFFF


class WindowSide(enum.Enum):
    RX = "rx"
    TX = "tx"


@dataclass
class ArqFrame:
    """A protocol frame: header fields and 64-bit payload words."""

    seq: int = 0
    ack: int = 0
    ptype: int = 0
    payload: List[int] = field(default_factory=list)


@dataclass
class FrameSlot:
    """Per-sequence-number state kept by a window."""

    req: Optional[ArqFrame] = None
    resp: Optional[ArqFrame] = None
    time: int = 0
    ntrans: int = 0
    acked: bool = False


class OutOfWindowError(ValueError):
    """A sequence number lies outside the window or was already handled."""


class SlotBusyError(RuntimeError):
    """The slot for the next sequence number still holds an unreleased frame."""


class MaxTransmissionsError(RuntimeError):
    """A frame reached the maximum number of transmissions."""


class SlidingWindow:
    """Window of sequence numbers ``[low_seq, high_seq)`` over ``max_frames`` slots."""

    def __init__(
        self,
        max_frames: int,
        max_wsize: int,
        side: WindowSide,
        frame_size: int,
        max_trans: int,
        congestion_avoidance: bool = False,
    ) -> None:
        if max_frames <= 0:
            raise ValueError("max_frames must be positive")
        self.max_frames = max_frames
        self.max_wsize = max_wsize
        self.side = side
        self.frame_size = frame_size
        self.max_trans = max_trans
        self.congestion_avoidance = congestion_avoidance
        self.frames: List[FrameSlot] = []
        self.low_seq = 0
        self.high_seq = 0
        self.flag = False
        self.cur_wsize = 0
        self.ss_thresh = 0
        self.reset()

    def reset(self) -> None:
        """Return the window to its initial state and clear all slots."""
        self.low_seq = 0
        if self.side is WindowSide.RX:
            self.high_seq = self.max_wsize
        else:
            self.high_seq = 0
            self.flag = False
            self.cur_wsize = self.frame_size
            self.ss_thresh = self.max_wsize * self.frame_size // 2
        self.frames = [FrameSlot() for _ in range(self.max_frames)]

    def _span(self) -> int:
        return ((self.high_seq - self.low_seq) & _U32) % self.max_frames

    def is_full(self) -> bool:
        """Tell whether no further frame fits into the window."""
        if self.congestion_avoidance:
            return self._span() == self.cur_wsize // self.frame_size
        return self._span() == self.max_wsize

    def contains(self, seq: int) -> bool:
        """Tell whether ``seq`` lies inside the current window."""
        winsize = self._span()
        dist_high = ((self.high_seq - seq) & _U32) % self.max_frames
        dist_low = ((seq - self.low_seq) & _U32) % self.max_frames
        return dist_high <= winsize and dist_low < winsize

    def new_frame_tx(self, frame: ArqFrame, currtime: int) -> bool:
        """Register ``frame`` for sending and assign it the next sequence number.

        Returns False when the window is full (or congestion was detected).
        """
        if self.is_full() or (self.congestion_avoidance and self.flag):
            return False
        seq = self.high_seq
        slot = self.frames[seq]
        if slot.req is not None:
            raise SlotBusyError(f"slot {seq} still holds an unacknowledged frame")
        frame.seq = seq
        slot.time = currtime
        slot.ntrans = 1
        slot.acked = False
        slot.req = frame
        self.high_seq = (seq + 1) % self.max_frames
        return True

    def new_frame_rx(self, frame: ArqFrame) -> List[FrameSlot]:
        """Accept a received frame; return the slots delivered in order."""
        seq = frame.seq
        if not 0 <= seq < self.max_frames:
            raise OutOfWindowError(f"sequence number {seq} out of range")
        slot = self.frames[seq]
        if slot.acked or not self.contains(seq):
            raise OutOfWindowError(f"sequence number {seq} not acceptable")
        slot.resp = frame
        slot.acked = True
        delivered: List[FrameSlot] = []
        if seq == self.low_seq:
            high = self.high_seq
            while seq != high and slot.acked:
                delivered.append(replace(slot))
                slot.resp = None
                slot.acked = False
                seq = (seq + 1) % self.max_frames
                slot = self.frames[seq]
            self.low_seq = seq
            self.high_seq = (seq + self.max_wsize) % self.max_frames
        return delivered

    def mark_frame(self, rack: int) -> List[FrameSlot]:
        """Acknowledge all frames up to and including ``rack``; return released slots."""
        if not self.contains(rack):
            raise OutOfWindowError(f"acknowledge {rack} outside of window")
        end = (rack + 1) % self.max_frames
        seq = self.low_seq
        released: List[FrameSlot] = []
        while seq != end:
            slot = self.frames[seq]
            released.append(replace(slot))
            slot.req = None
            slot.acked = True
            seq = (seq + 1) % self.max_frames
        self.low_seq = seq
        if self.congestion_avoidance:
            self._adapt_window_size()
        return released

    def _adapt_window_size(self) -> None:
        limit = self.max_wsize * self.frame_size
        if self.flag:
            # after a retransmission drain the window, then restart with slow start
            if self.low_seq == self.high_seq:
                self.ss_thresh = self.cur_wsize // 2
                self.cur_wsize = self.frame_size
                self.flag = False
            return
        cur = self.cur_wsize
        if cur < self.ss_thresh:
            cur += self.frame_size
        else:
            cur += ((100 - (cur * 100) // limit) * self.frame_size) // 100
        self.cur_wsize = min(cur, limit)

    def resend_frames(self, rto: int, currtime: int) -> List[FrameSlot]:
        """Return the slots whose retransmission timeout has expired."""
        due: List[FrameSlot] = []
        seq = self.low_seq
        while seq != self.high_seq:
            slot = self.frames[seq]
            if slot.req is not None and ((currtime - slot.time) & _U64) // rto >= slot.ntrans:
                slot.ntrans += 1
                if slot.ntrans >= self.max_trans:
                    raise MaxTransmissionsError(
                        f"maximum number of transmissions reached ({slot.ntrans})"
                    )
                self.flag = True
                due.append(replace(slot))
            seq = (seq + 1) % self.max_frames
        return due