"""Request/response and subscription handling for OBD-II over CAN."""

from __future__ import annotations

import logging
import sys
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, TextIO, Union

from obdcan.pids import PID, OBDResult, decode, pid_to_string

ECU_RESPONSE_ID = 0x7E8
OBD_REQUEST_ID = 0x7E0
TIMEOUT_MS = 500

MAX_PENDING = 8
MAX_SUBSCRIPTIONS = 8
MAX_SCAN_PIDS = 32

_MODE_CURRENT_DATA = 0x01
_MODE_CURRENT_DATA_REPLY = 0x41
_MS_MASK = 0xFFFFFFFF

OBDCallback = Callable[[OBDResult], None]
OBDScanCallback = Callable[[tuple], None]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanFrame:
    """A classic CAN frame; the payload is always held as eight bytes."""

    identifier: int
    data: bytes = b""
    extended: bool = False

    def __post_init__(self) -> None:
        payload = bytes(self.data)
        if len(payload) > 8:
            raise ValueError("a CAN frame carries at most 8 data bytes")
        object.__setattr__(self, "data", payload.ljust(8, b"\0"))


class CanBus:
    """An in-memory CAN bus. Subclass it to attach a real controller.

    Frames written are kept in ``sent``; frames handed to ``deliver`` are
    returned by ``read_frame`` in arrival order.
    """

    def __init__(self, speed_kbps: int = 500, rx_queue_size: int = 20) -> None:
        self.speed_kbps = speed_kbps
        self.started = False
        self.sent: list[CanFrame] = []
        self._rx_queue_size = rx_queue_size
        self._rx: deque[CanFrame] = deque()

    def start(self) -> bool:
        """Bring the bus up; returns whether it succeeded."""
        self.started = True
        return True

    def write_frame(self, frame: CanFrame) -> bool:
        """Transmit a frame; returns False if the bus is not started."""
        if not self.started:
            return False
        self.sent.append(frame)
        return True

    def read_frame(self) -> Optional[CanFrame]:
        """Return the next received frame without blocking, or None."""
        return self._rx.popleft() if self._rx else None

    def deliver(self, frame: CanFrame) -> bool:
        """Queue a frame as received; returns False when the queue is full."""
        if len(self._rx) >= self._rx_queue_size:
            return False
        self._rx.append(frame)
        return True


@dataclass
class _Subscription:
    pid: PID
    interval_ms: int
    callback: Optional[OBDCallback]
    last_sent_at: int = 0
    awaiting_reply: bool = False
    active: bool = True


@dataclass
class _Pending:
    pid: PID
    callback: Optional[OBDCallback]
    sent_at: int
    subscription: Optional[_Subscription] = field(default=None)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000) & _MS_MASK


def _elapsed(now: int, then: int) -> int:
    return (now - then) & _MS_MASK


class OBD:
    """Polls an ECU for mode 01 data over a CAN bus.

    Call ``update`` regularly: it sends due subscription requests, expires
    requests that went unanswered for longer than ``TIMEOUT_MS`` and handles
    at most one received frame.
    """

    def __init__(self, bus: CanBus, clock: Optional[Callable[[], int]] = None) -> None:
        self._bus = bus
        self._clock = clock or _monotonic_ms
        self.frames_dropped = 0
        self._pending: list[Optional[_Pending]] = [None] * MAX_PENDING
        self._subscriptions: list[Optional[_Subscription]] = [None] * MAX_SUBSCRIPTIONS
        self._supported_pids: list[int] = []
        self._scan_callback: Optional[OBDScanCallback] = None
        self._scan_pending = False

    @property
    def supported_pids(self) -> tuple:
        """PIDs reported as supported by scans so far."""
        return tuple(self._supported_pids)

    def begin(self) -> bool:
        """Clear all requests and subscriptions and start the bus."""
        self._pending = [None] * MAX_PENDING
        for sub in self._subscriptions:
            if sub is not None:
                sub.active = False
        self._subscriptions = [None] * MAX_SUBSCRIPTIONS
        result = self._bus.start()
        log.info(
            "CAN begin %s at %u kbps",
            "succeeded" if result else "failed",
            getattr(self._bus, "speed_kbps", 0),
        )
        return result

    def _now(self) -> int:
        return self._clock() & _MS_MASK

    def _send(self, pid: int) -> None:
        payload = bytes([0x02, _MODE_CURRENT_DATA, int(pid), 0, 0, 0, 0, 0])
        self._bus.write_frame(CanFrame(OBD_REQUEST_ID, payload))

    @staticmethod
    def _free_slot(table: list) -> Optional[int]:
        return next((i for i, entry in enumerate(table) if entry is None), None)

    def request(self, pid: Union[PID, int], callback: Optional[OBDCallback]) -> bool:
        """Request ``pid`` once; returns False if the pending table is full."""
        pid = PID(pid)
        slot = self._free_slot(self._pending)
        if slot is None:
            log.warning("OBD: pending queue full, dropping request")
            return False
        self._send(pid)
        self._pending[slot] = _Pending(pid, callback, self._now())
        return True

    def scan_supported_pids(self, callback: Optional[OBDScanCallback]) -> None:
        """Ask the ECU which PIDs 0x01-0x20 it supports."""
        self._scan_callback = callback
        self._scan_pending = True
        self._send(PID.SUPPORTED_PIDS_01_20)

    def subscribe(
        self, pid: Union[PID, int], interval_ms: int, callback: Optional[OBDCallback]
    ) -> bool:
        """Poll ``pid`` every ``interval_ms``; an existing subscription is replaced.

        Returns False if the subscription table is full.
        """
        pid = PID(pid)
        existing = next(
            (s for s in self._subscriptions if s is not None and s.pid == pid), None
        )
        if existing is not None:
            existing.interval_ms = interval_ms
            existing.callback = callback
            existing.last_sent_at = 0
            existing.awaiting_reply = False
            return True
        slot = self._free_slot(self._subscriptions)
        if slot is None:
            log.warning("OBD: subscription table full")
            return False
        self._subscriptions[slot] = _Subscription(pid, interval_ms, callback)
        return True

    def unsubscribe(self, pid: Union[PID, int]) -> None:
        """Stop polling ``pid``."""
        for index, sub in enumerate(self._subscriptions):
            if sub is not None and sub.pid == pid:
                sub.active = False
                self._subscriptions[index] = None

    def _tick_subscriptions(self) -> None:
        now = self._now()
        for sub in self._subscriptions:
            if sub is None or sub.awaiting_reply:
                continue
            if _elapsed(now, sub.last_sent_at) < sub.interval_ms and sub.last_sent_at != 0:
                continue
            slot = self._free_slot(self._pending)
            if slot is None:
                log.warning("OBD: pending queue full, skipping subscription tick")
                continue
            self._send(sub.pid)
            sub.last_sent_at = now
            sub.awaiting_reply = True
            self._pending[slot] = _Pending(sub.pid, sub.callback, now, sub)

    @staticmethod
    def _release(pending: _Pending) -> None:
        sub = pending.subscription
        if sub is not None and sub.active:
            sub.awaiting_reply = False

    def update(self) -> None:
        """Run one round of sending, expiring and receiving."""
        self._tick_subscriptions()

        now = self._now()
        for index, pending in enumerate(self._pending):
            if pending is None:
                continue
            if _elapsed(now, pending.sent_at) > TIMEOUT_MS:
                self.frames_dropped += 1
                self._release(pending)
                self._pending[index] = None

        frame = self._bus.read_frame()
        if frame is None or frame.identifier != ECU_RESPONSE_ID:
            return
        mode, pid = frame.data[1], frame.data[2]
        if mode != _MODE_CURRENT_DATA_REPLY:
            return
        if pid == PID.SUPPORTED_PIDS_01_20:
            self._handle_scan_response(frame)
        self._check_pending(pid, frame)

    def _check_pending(self, pid: int, frame: CanFrame) -> None:
        for index, pending in enumerate(self._pending):
            if pending is None or pending.pid != pid:
                continue
            result = decode(pending.pid, frame.data)
            self._release(pending)
            if pending.callback is not None:
                pending.callback(result)
            self._pending[index] = None
            return

    def _handle_scan_response(self, frame: CanFrame) -> None:
        if not self._scan_pending:
            return
        self._scan_pending = False
        bitmask = int.from_bytes(frame.data[3:7], "big")
        for bit in range(32):
            if len(self._supported_pids) >= MAX_SCAN_PIDS:
                break
            if bitmask & (1 << (31 - bit)):
                self._supported_pids.append(bit + 1)
        if self._scan_callback is not None:
            self._scan_callback(tuple(self._supported_pids))

    def pid_to_string(self, pid: Union[PID, int]) -> str:
        """Return a human-readable label for ``pid``."""
        return pid_to_string(pid)

    def print_pending(self, file: Optional[TextIO] = None) -> None:
        """Write the outstanding requests to ``file`` (stdout by default)."""
        out = file or sys.stdout
        print("Pending requests:", file=out)
        for pending in self._pending:
            if pending is not None:
                print(f"  PID 0x{int(pending.pid):02X} sent at {pending.sent_at} ms", file=out)

    def print_subscriptions(self, file: Optional[TextIO] = None) -> None:
        """Write the active subscriptions to ``file`` (stdout by default)."""
        out = file or sys.stdout
        print("Active subscriptions:", file=out)
        for sub in self._subscriptions:
            if sub is not None:
                print(f"  PID 0x{int(sub.pid):02X} interval {sub.interval_ms} ms", file=out)

    def print_supported_pids(self, file: Optional[TextIO] = None) -> None:
        """Write the PIDs found by scans to ``file`` (stdout by default)."""
        out = file or sys.stdout
        print("Supported PIDs:", file=out)
        for pid in self._supported_pids:
            print(f"  PID 0x{pid:02X}", file=out)