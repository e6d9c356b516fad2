"""
alerts.py

Deterministic threshold alerts for the dashboard banner. Display guidance only; the anomaly
explanation still delegates classification to the model.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from orbitwatch.models.domain import AlertCategory, AlertSeverity, TelemetryAlert, TelemetryRecord

TEMP_CRITICAL_C = 38.0
TEMP_WARNING_C = 35.0
BATTERY_CRITICAL_V = 3.65
BATTERY_WARNING_V = 3.75
SIGNAL_CRITICAL_DBM = -95.0
SIGNAL_WARNING_DBM = -90.0
DELAY_CRITICAL_MS = 300.0
DELAY_WARNING_MS = 250.0


def generate_alerts(record: TelemetryRecord, now: Optional[datetime] = None) -> List[TelemetryAlert]:
    now = now or datetime.now(timezone.utc)
    sid = record.id or "unknown"
    stamp = int(now.timestamp() * 1000)
    alerts: List[TelemetryAlert] = []

    def add(key: str, category: AlertCategory, severity: AlertSeverity, title: str, description: str) -> None:
        alerts.append(
            TelemetryAlert(
                id=f"{key}-{sid}-{stamp}",
                category=category,
                severity=severity,
                title=title,
                description=description,
                ts=now,
            )
        )

    temp = record.internal_temperature
    if temp > TEMP_CRITICAL_C:
        add("high-temp", AlertCategory.THERMAL, AlertSeverity.CRITICAL, "Critical Temperature Alert",
            f"Internal temp ({temp:.1f}°C) exceeded critical threshold ({TEMP_CRITICAL_C:g}°C). Risk of overheating.")
    elif temp > TEMP_WARNING_C:
        add("warn-temp", AlertCategory.THERMAL, AlertSeverity.WARNING, "High Temperature Warning",
            f"Internal temperature ({temp:.1f}°C) is high (Threshold: {TEMP_WARNING_C:g}°C). Monitor closely.")

    volts = record.battery_voltage
    if volts < BATTERY_CRITICAL_V:
        add("low-battery", AlertCategory.POWER, AlertSeverity.CRITICAL, "Critical Low Battery",
            f"Battery voltage ({volts:.2f}V) is critically low (Threshold: {BATTERY_CRITICAL_V:g}V). Potential power loss imminent.")
    elif volts < BATTERY_WARNING_V:
        add("warn-battery", AlertCategory.POWER, AlertSeverity.WARNING, "Low Battery Warning",
            f"Battery voltage ({volts:.2f}V) is low (Threshold: {BATTERY_WARNING_V:g}V). Check power generation.")

    signal = record.communication_logs.signal_strength
    if signal < SIGNAL_CRITICAL_DBM:
        add("comm-issue-signal", AlertCategory.COMM, AlertSeverity.CRITICAL, "Critical Comm Signal",
            f"Signal strength ({signal:.0f} dBm) is very weak (Threshold: {SIGNAL_CRITICAL_DBM:g} dBm). Potential loss of contact.")
    elif signal < SIGNAL_WARNING_DBM:
        add("comm-warn-signal", AlertCategory.COMM, AlertSeverity.WARNING, "Weak Comm Signal",
            f"Signal strength ({signal:.0f} dBm) is weak (Threshold: {SIGNAL_WARNING_DBM:g} dBm). Investigate link quality.")

    delay = record.communication_logs.packet_delay
    if delay > DELAY_CRITICAL_MS:
        add("comm-issue-delay", AlertCategory.COMM, AlertSeverity.CRITICAL, "Critical Packet Delay",
            f"Packet delay ({delay:.0f} ms) is critically high (Threshold: {DELAY_CRITICAL_MS:g} ms). Investigate network issues.")
    elif delay > DELAY_WARNING_MS:
        add("comm-warn-delay", AlertCategory.COMM, AlertSeverity.WARNING, "High Packet Delay",
            f"Packet delay ({delay:.0f} ms) is high (Threshold: {DELAY_WARNING_MS:g} ms).")

    # critical first; stable sort keeps check order within a severity
    alerts.sort(key=lambda a: 0 if a.severity is AlertSeverity.CRITICAL else 1)
    return alerts
