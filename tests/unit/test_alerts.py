from datetime import datetime, timezone

import pytest

from orbitwatch.models.domain import AlertCategory, AlertSeverity, CommunicationLogs, TelemetryRecord
from orbitwatch.services.alerts import generate_alerts

NOW = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def _nominal(**overrides):
    base = dict(
        id="cubesat-001",
        battery_voltage=4.0,
        internal_temperature=25.0,
        communication_logs=CommunicationLogs(signal_strength=-70.0, packet_delay=100.0),
    )
    base.update(overrides)
    return TelemetryRecord(**base)


def test_nominal_record_has_no_alerts():
    assert generate_alerts(_nominal(), now=NOW) == []


@pytest.mark.parametrize("record, category, severity", [
    (_nominal(internal_temperature=38.5), AlertCategory.THERMAL, AlertSeverity.CRITICAL),
    (_nominal(internal_temperature=36.0), AlertCategory.THERMAL, AlertSeverity.WARNING),
    (_nominal(battery_voltage=3.6), AlertCategory.POWER, AlertSeverity.CRITICAL),
    (_nominal(battery_voltage=3.7), AlertCategory.POWER, AlertSeverity.WARNING),
    (_nominal(communication_logs=CommunicationLogs(signal_strength=-96.0, packet_delay=100.0)),
     AlertCategory.COMM, AlertSeverity.CRITICAL),
    (_nominal(communication_logs=CommunicationLogs(signal_strength=-92.0, packet_delay=100.0)),
     AlertCategory.COMM, AlertSeverity.WARNING),
    (_nominal(communication_logs=CommunicationLogs(signal_strength=-70.0, packet_delay=320.0)),
     AlertCategory.COMM, AlertSeverity.CRITICAL),
    (_nominal(communication_logs=CommunicationLogs(signal_strength=-70.0, packet_delay=260.0)),
     AlertCategory.COMM, AlertSeverity.WARNING),
])
def test_single_threshold_alerts(record, category, severity):
    alerts = generate_alerts(record, now=NOW)
    assert len(alerts) == 1
    assert alerts[0].category is category
    assert alerts[0].severity is severity
    assert alerts[0].ts == NOW
    assert "cubesat-001" in alerts[0].id


def test_thresholds_are_exclusive():
    record = _nominal(
        internal_temperature=35.0,
        battery_voltage=3.75,
        communication_logs=CommunicationLogs(signal_strength=-90.0, packet_delay=250.0),
    )
    assert generate_alerts(record, now=NOW) == []


def test_critical_alerts_come_first():
    record = _nominal(
        internal_temperature=36.0,  # warning
        battery_voltage=3.5,        # critical
        communication_logs=CommunicationLogs(signal_strength=-92.0, packet_delay=400.0),  # warning, critical
    )
    alerts = generate_alerts(record, now=NOW)
    severities = [a.severity for a in alerts]
    assert severities == [AlertSeverity.CRITICAL] * 2 + [AlertSeverity.WARNING] * 2
    assert "3.50V" in alerts[0].description
    assert "Threshold: 3.65V" in alerts[0].description
