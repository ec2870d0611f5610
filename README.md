# hostarq

Pure-Python building blocks for a host-side automatic-repeat-request (ARQ)
transport that talks to an FPGA over UDP. It has no third-party dependencies.
`hostarq.daemon` uses `fcntl`, so that module needs a POSIX system.

## Modules

- `hostarq.seqnum`: sequence-number arithmetic with wrap-around at
  `max_frames`.
  - `next_seq(seq, max_frames)` returns the following number.
  - `in_window(x, a, b, max_frames)` tells whether `x` lies in the window
    `(a, b]`. The window may wrap around, and an empty window contains
    nothing.
  - `dist_window(x, a, max_frames)` returns the distance from `a` to `x`.
- `hostarq.windowbuffer`: `WindowBuffer(capacity)`, a bounded first-in
  first-out buffer with these methods:
  - `push_back`, `pop_front`, `drop_front`, `at`
  - `space`, `empty`, `full`, `len()`

  Invalid access raises `WindowBufferError`.
- `hostarq.window`: `SlidingWindow(max_frames, max_wsize, side, frame_size,
  max_trans, congestion_avoidance=False)`, the transmit and receive window
  bookkeeping. `side` is `WindowSide.TX` or `WindowSide.RX`, and frames are
  `ArqFrame` objects.
  - `new_frame_tx` assigns the next sequence number. It returns `False` when
    the window is full, and raises `SlotBusyError` if the slot is still in
    use.
  - `new_frame_rx` returns the slots that can now be delivered in order.
  - `mark_frame(rack)` acknowledges every frame up to `rack`.
  - `resend_frames(rto, currtime)` returns the frames whose timeout has
    expired. It raises `MaxTransmissionsError` once a frame reaches
    `max_trans`.
  - Sequence numbers outside the window raise `OutOfWindowError`.
  - With `congestion_avoidance` the window size follows slow start and then
    congestion avoidance.
- `hostarq.fifo`: `Fifo(capacity)`, a bounded thread-safe queue.
  - `push` and `pop` block.
  - `try_push` raises `FifoFullError` when the queue is full.
  - `try_pop` and `front` raise `FifoEmptyError` when it is empty.
  - `reset` empties the queue.
- `hostarq.sync`: thread synchronisation primitives.
  - `AtomicInt` is a signed 32-bit value with `load`, `store`,
    `compare_exchange`, `exchange`, `increment` and `decrement`.
  - `Mutex` and `TicketLock` are locks that also work as context managers.
  - `SignalVar` holds signal bits. `wait` and `test` clear and return the
    bits of a mask; `signal` sets bits and wakes waiters.
  - `Semaphore` is a counting semaphore with `up` and `down`.
  - `QueueLock(places)` hands out places in order: `lock` returns a place
    and `unlock(place)` releases it.
- `hostarq.mac`:
  - `parse_mac(text)` turns `xx:xx:...` into bytes.
  - `format_mac(prefix, mac)` renders `prefix: xx:xx:xx:xx:xx:xx`.
- `hostarq.daemon`: `HostARQHandle` holds the settings of one daemon process
  and starts and stops it.
  - `open(daemon, max_unique_queues)` starts the given program with the
    arguments from `daemon_arguments`. It waits until the program changes
    the flags of a startup lockfile.
  - `close` sends `SIGTERM`. It then waits up to one second for the process
    and its shared-memory file to go away.
  - Failures raise `HostARQError`.
  - `exit_reason` describes a daemon exit status (`ExitCode`).
- `hostarq.stream`: helpers for an ARQ connection.
  - `ARQStreamSettings` holds the connection settings. The defaults are data
    port 1234, reset port 0xAFFE, a 400 ms initial flush and a 500 ms
    destruction timeout.
  - `connection_name(settings)` returns `ip-port_data-port_reset`.
  - `backoff_intervals()` is an endless generator of sleep times in seconds.
    They grow from 5 µs to 100 ms and then stay at 100 ms.
  - `Packet` holds a 16-bit packet id and 64-bit payload words.
  - `Response.parse(packets, cfg_type)` reads the configuration the FPGA
    sends after a reset. This includes bitfile information that spans
    several packets. It raises `ResponseError` if the response is missing
    or malformed.

## Example

```python
from hostarq.seqnum import next_seq, in_window
from hostarq.windowbuffer import WindowBuffer
from hostarq.mac import parse_mac, format_mac

assert next_seq(15, 16) == 0
assert in_window(1, 14, 18, 16)

buf = WindowBuffer(4)
buf.push_back("a")
buf.push_back("b")
assert buf.pop_front() == "a"
assert len(buf) == 1

mac = parse_mac("02:00:00:00:00:01")
assert format_mac("eth0", mac) == "eth0: 02:00:00:00:00:01"
```

## What this package does not do

- It sends and receives nothing over the network by itself.
- It has no stream object that sends and receives packets.
- It has no shared-memory transport and no command-line programs.
- It does not include the HostARQ daemon. `HostARQHandle.open` starts a
  daemon program that you name. That program must exist and must signal its
  startup through the lockfile.

## Running the tests

```
pip install -e .[test]
pytest
```