# obdcan

A small, non-blocking OBD-II client for mode 01 (current data) over a CAN bus.

It sends requests to the standard diagnostic request ID (`0x7E0`). It listens for
replies from the engine ECU (`0x7E8`). It decodes the common parameters into
engineering units and hands the results to your callbacks. Nothing in it blocks.
You call `OBD.update()` from your own loop, and each call does one step of work.

## Modules

- `obdcan.pids` holds the `PID` enum, the `OBDResult` dataclass, `decode(pid, data)`
  and `pid_to_string(pid)`.
- `obdcan.client` holds `CanFrame`, `CanBus` and the `OBD` client.

## Features

- One-shot requests: `OBD.request(pid, callback)` returns `False` when the
  pending table is full.
- Periodic subscriptions: `OBD.subscribe(pid, interval_ms, callback)` and
  `OBD.unsubscribe(pid)`.
  - A subscription is sent on the first update, then every `interval_ms`.
  - A subscription never has more than one request in flight.
  - Subscribing again to a PID replaces its interval and callback.
  - `subscribe` returns `False` when the subscription table is full.
- Supported-PID scan: `OBD.scan_supported_pids(callback)` reads the PID 0x00
  bitmask and works out which of PIDs 0x01–0x20 the ECU supports.
  - The callback receives a tuple of every supported PID found so far.
  - The same tuple is available as `OBD.supported_pids`.
- Requests that get no reply within 500 ms are dropped and counted in
  `OBD.frames_dropped`.
- Fixed capacities:
  - at most 8 pending requests
  - at most 8 subscriptions
  - at most 32 scanned PIDs
- Decoding:

  | Parameter | Unit |
  | --- | --- |
  | speed | `mph` |
  | RPM | `rpm` |
  | engine load, throttle and fuel level | `%` |
  | coolant, intake and oil temperature | `C` |
  | odometer | `km` |
  | battery voltage | `volts` |
  | recommended gear (upper nibble of the first byte) | `gear` |

  Any other PID gives the first value byte with the unit `raw`.
- `request` and `subscribe` take a `PID` or its integer value. An integer that
  is not a known `PID` raises `ValueError`.

## Installation

```
pip install obdcan
```

The package has no runtime dependencies.

## Connecting a bus

`OBD(bus, clock=None)` takes two arguments:

- `bus`: a `CanBus`.
- `clock`: optional. A callable that returns the current time in
  milliseconds. It defaults to a monotonic clock.

The base `CanBus` is an in-memory bus:

- `start()` marks it started.
- `write_frame(frame)` appends the frame to `bus.sent`, but only once the bus
  is started.
- `deliver(frame)` queues a frame as received. The queue holds at most 20
  frames by default.
- `read_frame()` returns the next queued frame, or `None` when none is waiting.

To drive real hardware, subclass `CanBus` and override `start()`,
`write_frame(frame)` and `read_frame()`. `read_frame()` must not block.

```python
from obdcan.client import OBD, CanBus, CanFrame


class MyBus(CanBus):
    def start(self):
        ...  # open the interface; return True on success

    def write_frame(self, frame: CanFrame):
        ...  # put the frame on the bus

    def read_frame(self):
        ...  # return a received CanFrame, or None if nothing is waiting


obd = OBD(MyBus())
```

`CanFrame(identifier, data=b"", extended=False)` always holds its payload as
eight bytes, padding it with zeros. A payload longer than eight bytes raises
`ValueError`.

## Usage

```python
from obdcan.pids import PID, OBDResult


def on_speed(result: OBDResult) -> None:
    print(f"Speed: {result.value:.0f} {result.unit}")


if not obd.begin():
    print("CAN failed to start!")

obd.subscribe(PID.SPEED, 250, on_speed)
obd.request(PID.COOLANT_TEMP, lambda r: print(r.value, r.unit))
obd.scan_supported_pids(lambda pids: print([hex(p) for p in pids]))

while True:
    obd.update()
```

`begin()` clears all pending requests and subscriptions, starts the bus and
returns whether the bus started. The outcome is logged through the
`obdcan.client` logger.

Each `update()` does three things, in this order:

1. It sends the subscription requests that are due.
2. It expires requests that have timed out.
3. It handles at most one received frame.

A frame is handled only if it comes from `0x7E8` and has mode byte `0x41`.

### Decoding on its own

```python
from obdcan.pids import PID, decode, pid_to_string

result = decode(PID.RPM, bytes([0x04, 0x41, 0x0C, 0x1A, 0xF8]))
print(pid_to_string(PID.RPM), result.value, result.unit)   # rpm 1726.0 rpm
```

`decode` takes the data bytes of a whole reply frame, and the value bytes start
at offset 3. Missing bytes count as zero. `pid_to_string` returns `"Unknown"`
for PIDs that have no label.

### Diagnostics

These methods write the client's current state to a text stream. The stream
defaults to standard output.

- `print_pending(file)`
- `print_subscriptions(file)`
- `print_supported_pids(file)`

## What it does not do

- `obdcan` contains no CAN driver. Apart from the in-memory `CanBus`, you must
  supply the bus yourself.
- It only requests mode 01 data.
- It offers no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```