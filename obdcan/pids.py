"""OBD-II mode 01 parameter identifiers and decoding of their replies."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Union

_KMH_TO_MPH = 0.621371


class PID(enum.IntEnum):
    """Known mode 01 parameter identifiers."""

    SUPPORTED_PIDS_01_20 = 0x00
    ENGINE_LOAD = 0x04
    ENGINE_ODOMETER = 0xD3
    COOLANT_TEMP = 0x05
    FUEL_PRESSURE = 0x0A
    RPM = 0x0C
    SPEED = 0x0D
    INTAKE_TEMP = 0x0F
    THROTTLE = 0x11
    FUEL_LEVEL = 0x2F
    OIL_TEMP = 0x5C
    GEAR_RCMD = 0x65
    BATTERY_VOLTAGE = 0x42


@dataclass(frozen=True)
class OBDResult:
    """A decoded reply: the parameter, its value and the unit of the value."""

    pid: Union[PID, int]
    value: float
    unit: str


_Decoder = Callable[[int, int, int, int], float]


def _percent(a: int, b: int, c: int, d: int) -> float:
    return a / 2.55


def _temperature(a: int, b: int, c: int, d: int) -> float:
    return a - 40.0


_DECODERS: dict[PID, tuple[_Decoder, str]] = {
    PID.GEAR_RCMD: (lambda a, b, c, d: float((a >> 4) & 0x0F), "gear"),
    PID.SPEED: (lambda a, b, c, d: a * _KMH_TO_MPH, "mph"),
    PID.RPM: (lambda a, b, c, d: ((256.0 * a) + b) / 4.0, "rpm"),
    PID.ENGINE_LOAD: (_percent, "%"),
    PID.ENGINE_ODOMETER: (
        lambda a, b, c, d: ((a << 24) | (b << 16) | (c << 8) | d) / 10.0,
        "km",
    ),
    PID.COOLANT_TEMP: (_temperature, "C"),
    PID.INTAKE_TEMP: (_temperature, "C"),
    PID.OIL_TEMP: (_temperature, "C"),
    PID.THROTTLE: (_percent, "%"),
    PID.FUEL_LEVEL: (_percent, "%"),
    PID.BATTERY_VOLTAGE: (lambda a, b, c, d: ((a << 8) | b) / 1000.0, "volts"),
}

_NAMES: dict[PID, str] = {
    PID.SPEED: "Speed (mph)",
    PID.RPM: "rpm",
    PID.ENGINE_LOAD: "Engine Load (%)",
    PID.COOLANT_TEMP: "Coolant Temp (°C)",
    PID.INTAKE_TEMP: "Intake Temp (°C)",
    PID.OIL_TEMP: "Oil Temp (°C)",
    PID.THROTTLE: "Throttle (%)",
    PID.FUEL_LEVEL: "Fuel Level (%)",
    PID.GEAR_RCMD: "Gear Command",
}


def _as_pid(pid: Union[PID, int]) -> Union[PID, int]:
    try:
        return PID(pid)
    except ValueError:
        return int(pid)


def decode(pid: Union[PID, int], data: bytes) -> OBDResult:
    """Decode the data bytes of a mode 01 reply frame for ``pid``.

    ``data`` is the frame payload; the value bytes start at offset 3.
    Missing bytes count as zero. Unknown parameters yield the first value
    byte with the unit ``"raw"``.
    """
    payload = bytes(data).ljust(8, b"\0")
    a, b, c, d = payload[3:7]
    key = _as_pid(pid)
    decoder = _DECODERS.get(key) if isinstance(key, PID) else None
    if decoder is None:
        return OBDResult(key, float(a), "raw")
    func, unit = decoder
    return OBDResult(key, func(a, b, c, d), unit)


def pid_to_string(pid: Union[PID, int]) -> str:
    """Return a human-readable label for ``pid``, or ``"Unknown"``."""
    key = _as_pid(pid)
    if isinstance(key, PID):
        return _NAMES.get(key, "Unknown")
    return "Unknown"