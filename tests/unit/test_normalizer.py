import pytest

from orbitwatch.errors import NotFoundError, ValidationError
from orbitwatch.models.domain import CommunicationLogs, CommunicationStatus, TelemetryRecord
from orbitwatch.services.normalizer import (
    battery_percent,
    communication_status,
    display_temperature,
    summarize,
    to_risk_input,
)


def _record(**overrides):
    base = dict(
        id="cubesat-001",
        battery_voltage=3.85,
        internal_temperature=22.5,
        communication_logs=CommunicationLogs(signal_strength=-80.0, packet_delay=120.0),
    )
    base.update(overrides)
    return TelemetryRecord(**base)


# ============================================================
# BATTERY
# ============================================================

def test_battery_percent_endpoints():
    assert battery_percent(3.5) == 0
    assert battery_percent(4.2) == 100
    assert battery_percent(3.85) == 50


@pytest.mark.parametrize("voltage", [-10.0, 0.0, 3.0, 3.49, 4.21, 5.0, 100.0, float("inf"), float("-inf")])
def test_battery_percent_is_clamped(voltage):
    assert 0 <= battery_percent(voltage) <= 100


def test_battery_percent_is_monotonic():
    voltages = [3.0 + i * 0.01 for i in range(150)]
    values = [battery_percent(v) for v in voltages]
    assert values == sorted(values)


def test_battery_percent_misconfigured_range_returns_zero():
    assert battery_percent(3.9, min_voltage=4.2, max_voltage=4.2) == 0
    assert battery_percent(3.9, min_voltage=4.2, max_voltage=3.5) == 0


def test_battery_percent_nan_is_zero():
    assert battery_percent(float("nan")) == 0


# ============================================================
# COMM STATUS (table-driven)
# ============================================================

@pytest.mark.parametrize("signal, expected", [
    (-80.0, CommunicationStatus.STABLE),
    (-85.0, CommunicationStatus.STABLE),
    (-85.01, CommunicationStatus.UNSTABLE),
    (-90.0, CommunicationStatus.UNSTABLE),
    (-95.0, CommunicationStatus.UNSTABLE),
    (-95.01, CommunicationStatus.LOST),
    (-100.0, CommunicationStatus.LOST),
    (None, CommunicationStatus.UNKNOWN),
    (float("nan"), CommunicationStatus.UNKNOWN),
])
def test_communication_status(signal, expected):
    assert communication_status(signal) is expected


# ============================================================
# ABSENT RECORD
# ============================================================

def test_display_temperature_flags_missing_record():
    reading = display_temperature(None)
    assert reading.value_c == 0.0
    assert reading.no_data is True


def test_display_temperature_real_zero_is_not_no_data():
    reading = display_temperature(_record(internal_temperature=0.0))
    assert reading.value_c == 0.0
    assert reading.no_data is False


def test_summarize_absent_record():
    s = summarize("cubesat-404", None)
    assert s.no_data is True
    assert s.battery_percent == 0
    assert s.temperature == 0.0
    assert s.communication_status is CommunicationStatus.UNKNOWN
    assert s.risk_input is None


def test_summarize_present_record_builds_risk_input():
    s = summarize("cubesat-001", _record(communication_logs=CommunicationLogs(signal_strength=-92.0)))
    assert s.no_data is False
    assert s.battery_percent == 50
    assert s.communication_status is CommunicationStatus.UNSTABLE
    assert s.risk_input is not None
    assert s.risk_input.battery_level == 50.0
    assert s.risk_input.temperature == 22.5
    assert s.risk_input.communication_status == "unstable"


def test_placeholder_record_reads_as_lost_contact():
    s = summarize("cubesat-001", TelemetryRecord.placeholder("cubesat-001"))
    assert s.no_data is False
    assert s.communication_status is CommunicationStatus.LOST


def test_to_risk_input_refuses_missing_record():
    with pytest.raises(NotFoundError) as exc:
        to_risk_input("ghost-sat", None)
    assert "ghost-sat" in str(exc.value)


@pytest.mark.parametrize("temp", [float("nan"), float("inf"), float("-inf")])
def test_summarize_is_total_for_non_finite_temperature(temp):
    s = summarize("cubesat-001", _record(internal_temperature=temp, battery_voltage=3.9))
    assert s.no_data is False
    assert s.temperature is None
    assert s.risk_input is None
    assert s.battery_percent == 57
    assert display_temperature(_record(internal_temperature=temp)).no_data is True


def test_summarize_skips_risk_input_for_unknown_link():
    s = summarize("cubesat-001", _record(communication_logs=CommunicationLogs(signal_strength=float("nan"))))
    assert s.communication_status is CommunicationStatus.UNKNOWN
    assert s.risk_input is None


def test_to_risk_input_reports_unknown_link_as_invalid_input():
    record = _record(communication_logs=CommunicationLogs(signal_strength=float("nan")))
    with pytest.raises(ValidationError) as exc:
        to_risk_input("cubesat-001", record)
    assert exc.value.fields == ("communicationStatus",)


def test_to_risk_input_reports_non_finite_temperature():
    with pytest.raises(ValidationError) as exc:
        to_risk_input("cubesat-001", _record(internal_temperature=float("inf")))
    assert exc.value.fields == ("temperature",)
