"""Connection settings, packets and the FPGA reset response of an ARQ stream."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Iterable, Iterator, List

__all__ = [
    "ARQStreamSettings",
    "connection_name",
    "backoff_intervals",
    "Packet",
    "ResponseError",
    "Response",
]

WORD_SIZE = 8
_U16 = 0xFFFF
_U64 = 0xFFFF_FFFF_FFFF_FFFF

# back-off sleep intervals in microseconds, never reaching one second
_BACKOFF_US = (5, 10, 50, 100, 500, 1000, 5000, 10000, 50000, 100000)

# number of leading words every reset response carries
_REQUIRED_WORDS = 4


@dataclass
class ARQStreamSettings:
    """Parameters of one connection to a remote ARQ endpoint."""

    ip: str = ""
    reset: bool = True
    port_data: int = 1234
    port_reset: int = 0xAFFE
    local_port_data: int = 0
    unique_queues: FrozenSet[int] = field(default_factory=frozenset)
    init_flush_lb_packet: bool = True
    init_flush_timeout: timedelta = timedelta(milliseconds=400)
    destruction_timeout: timedelta = timedelta(milliseconds=500)

    def __post_init__(self) -> None:
        for name in ("port_data", "port_reset", "local_port_data"):
            port = getattr(self, name)
            if not 0 <= port <= _U16:
                raise ValueError(f"{name} {port} is not a valid UDP port")
        self.unique_queues = frozenset(self.unique_queues)


def connection_name(settings: ARQStreamSettings) -> str:
    """Unique name of a connection, built from remote address and ports."""
    return f"{settings.ip}-{settings.port_data}-{settings.port_reset}"


def backoff_intervals() -> Iterator[float]:
    """Yield growing sleep intervals in seconds, repeating the longest forever."""
    seconds = [us / 1_000_000 for us in _BACKOFF_US]
    return itertools.chain(seconds, itertools.repeat(seconds[-1]))


@dataclass
class Packet:
    """A packet: 16-bit packet type and 64-bit payload words."""

    pid: int = 0
    payload: List[int] = field(default_factory=list)
    seq: int = 0
    ack: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.pid <= _U16:
            raise ValueError(f"packet id {self.pid} does not fit 16 bits")
        self.payload = list(self.payload)
        for word in self.payload:
            if not 0 <= word <= _U64:
                raise ValueError(f"payload word {word} does not fit 64 bits")

    def __len__(self) -> int:
        return len(self.payload)

    def __getitem__(self, index: int) -> int:
        return self.payload[index]


class ResponseError(RuntimeError):
    """The reset response of the remote side is missing or malformed."""


@dataclass
class Response:
    """Configuration the remote side reports after a reset."""

    max_nrframes: int = 0
    max_winsiz: int = 0
    max_pduwords: int = 0
    bitfile_info: str = ""

    @classmethod
    def parse(cls, packets: Iterable[Packet], cfg_type: int) -> "Response":
        """Build the response from received packets.

        The first packet must be a configuration packet. Bitfile information
        that does not fit into it continues in the next configuration
        packets; packets of other types in between are dropped.
        """
        stream = iter(packets)
        first = next(stream, None)
        if first is None:
            raise ResponseError("No bitfile info packets available")
        if first.pid != cfg_type:
            raise ResponseError("Response packet has wrong packet type")
        if len(first) < _REQUIRED_WORDS:
            raise ResponseError("Response packet length too small")

        response = cls(
            max_nrframes=first[0],
            max_winsiz=first[1],
            max_pduwords=first[2],
        )
        remainder = first[3]
        if remainder == 0:
            return response

        info = bytearray()
        packet = first
        start = _REQUIRED_WORDS
        while remainder > 0:
            words = packet.payload[start:]
            if remainder < len(words):
                raise ResponseError("More words in response packet than expected")
            for word in words:
                info += word.to_bytes(WORD_SIZE, "big")
            remainder -= len(words)
            if remainder > 0:
                packet = next((p for p in stream if p.pid == cfg_type), None)
                if packet is None:
                    raise ResponseError("No reset response remainder packets available")
                start = 0

        response.bitfile_info = bytes(info).split(b"\0", 1)[0].decode("latin-1")
        return response