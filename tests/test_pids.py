import pytest

from obdcan.pids import PID, OBDResult, decode, pid_to_string


def frame(a=0, b=0, c=0, d=0):
    return bytes([0x04, 0x41, 0x00, a, b, c, d, 0x00])


def test_rpm_worked_example():
    result = decode(PID.RPM, frame(0x0F, 0xA0))
    assert result == OBDResult(PID.RPM, 1000.0, "rpm")


def test_coolant_temperature_offset():
    result = decode(PID.COOLANT_TEMP, frame(0x5A))
    assert result.value == pytest.approx(50.0)
    assert result.unit == "C"


def test_battery_voltage_in_volts():
    result = decode(PID.BATTERY_VOLTAGE, frame(0x30, 0xD4))
    assert result.value == pytest.approx(12.5)
    assert result.unit == "volts"


@pytest.mark.parametrize("a", [0, 1, 40, 128, 254])
def test_temperatures_share_formula_and_step_by_one(a):
    coolant = decode(PID.COOLANT_TEMP, frame(a))
    intake = decode(PID.INTAKE_TEMP, frame(a))
    oil = decode(PID.OIL_TEMP, frame(a))
    assert coolant.value == intake.value == oil.value
    assert decode(PID.OIL_TEMP, frame(a + 1)).value - oil.value == pytest.approx(1.0)
    assert {coolant.unit, intake.unit, oil.unit} == {"C"}


def test_speed_is_linear_in_mph():
    half = decode(PID.SPEED, frame(50))
    full = decode(PID.SPEED, frame(100))
    assert full.value == pytest.approx(2 * half.value)
    assert full.value < 100
    assert full.unit == "mph"


@pytest.mark.parametrize("a", [0, 17, 128, 255])
def test_percentages_agree(a):
    load = decode(PID.ENGINE_LOAD, frame(a))
    throttle = decode(PID.THROTTLE, frame(a))
    fuel = decode(PID.FUEL_LEVEL, frame(a))
    assert load.value == throttle.value == fuel.value
    assert load.unit == throttle.unit == fuel.unit == "%"


def test_percentage_increases_with_byte():
    assert decode(PID.THROTTLE, frame(255)).value > decode(PID.THROTTLE, frame(254)).value


def test_gear_uses_high_nibble_only():
    for a in range(256):
        result = decode(PID.GEAR_RCMD, frame(a))
        assert 0 <= result.value <= 15
        assert result.value == decode(PID.GEAR_RCMD, frame(a & 0xF0)).value
        assert result.unit == "gear"


def test_odometer_byte_order():
    high = decode(PID.ENGINE_ODOMETER, frame(1, 0, 0, 0))
    low = decode(PID.ENGINE_ODOMETER, frame(0, 0, 0, 1))
    assert high.value == pytest.approx(low.value * 2**24)
    assert high.unit == "km"


def test_unhandled_known_pid_is_raw():
    result = decode(PID.FUEL_PRESSURE, frame(0x7B))
    assert result == OBDResult(PID.FUEL_PRESSURE, float(0x7B), "raw")


def test_unknown_integer_pid_is_raw():
    result = decode(0x99, frame(0x33))
    assert result.pid == 0x99
    assert result.value == 0x33
    assert result.unit == "raw"


def test_integer_pid_is_normalised_to_enum():
    assert decode(0x0C, frame(0x0F, 0xA0)).pid is PID.RPM


def test_short_payload_is_zero_padded():
    short = bytes([0x04, 0x41, 0x0C, 0x10])
    assert decode(PID.RPM, short) == decode(PID.RPM, short + bytes(4))


@pytest.mark.parametrize(
    "pid, label",
    [
        (PID.SPEED, "Speed (mph)"),
        (PID.RPM, "rpm"),
        (PID.ENGINE_LOAD, "Engine Load (%)"),
        (PID.COOLANT_TEMP, "Coolant Temp (°C)"),
        (PID.INTAKE_TEMP, "Intake Temp (°C)"),
        (PID.OIL_TEMP, "Oil Temp (°C)"),
        (PID.THROTTLE, "Throttle (%)"),
        (PID.FUEL_LEVEL, "Fuel Level (%)"),
        (PID.GEAR_RCMD, "Gear Command"),
        (PID.BATTERY_VOLTAGE, "Unknown"),
        (PID.ENGINE_ODOMETER, "Unknown"),
        (0x99, "Unknown"),
    ],
)
def test_pid_to_string(pid, label):
    assert pid_to_string(pid) == label