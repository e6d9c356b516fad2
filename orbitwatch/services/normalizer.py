"""
normalizer.py

Purpose:
  Pure, total transforms from a raw telemetry record to the dashboard readings and the
  coarse inputs of the risk-score call.

Rules:
  - Battery: linear map of voltage over [3.5 V, 4.2 V] to 0..100 %, clamped and rounded.
  - Comm status: >= -85 dBm stable, [-95, -85) unstable, < -95 lost, no reading -> unknown.
  - An absent record yields zeros + `no_data=True`, never a silent zero reading.
  - A non-finite temperature is shown as no reading and never reaches the risk-score input.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from orbitwatch.errors import NotFoundError, ValidationError
from orbitwatch.models.domain import (
    CommunicationStatus,
    RiskScoreInput,
    TelemetryRecord,
    TelemetrySummary,
    TemperatureReading,
)
from orbitwatch.schemas.contracts import SchemaName, validate

MIN_VOLTAGE = 3.5
MAX_VOLTAGE = 4.2

STABLE_MIN_DBM = -85.0
UNSTABLE_MIN_DBM = -95.0


def battery_percent(voltage: float, min_voltage: float = MIN_VOLTAGE, max_voltage: float = MAX_VOLTAGE) -> int:
    span = max_voltage - min_voltage
    if span <= 0 or voltage is None or math.isnan(voltage):
        return 0
    pct = (voltage - min_voltage) / span * 100.0
    return int(round(min(100.0, max(0.0, pct))))


def communication_status(signal_strength_dbm: Optional[float]) -> CommunicationStatus:
    if signal_strength_dbm is None or math.isnan(signal_strength_dbm):
        return CommunicationStatus.UNKNOWN
    if signal_strength_dbm >= STABLE_MIN_DBM:
        return CommunicationStatus.STABLE
    if signal_strength_dbm >= UNSTABLE_MIN_DBM:
        return CommunicationStatus.UNSTABLE
    return CommunicationStatus.LOST


def display_temperature(record: Optional[TelemetryRecord]) -> TemperatureReading:
    if record is None or not math.isfinite(record.internal_temperature):
        return TemperatureReading(value_c=0.0, no_data=True)
    return TemperatureReading(value_c=record.internal_temperature, no_data=False)


def _risk_payload(record: TelemetryRecord) -> Dict[str, Any]:
    status = communication_status(record.communication_logs.signal_strength)
    return {
        "batteryLevel": float(battery_percent(record.battery_voltage)),
        "temperature": record.internal_temperature,
        "communicationStatus": status.value,
    }


def summarize(satellite_id: str, record: Optional[TelemetryRecord]) -> TelemetrySummary:
    """
    Dashboard reading for one satellite.

    `riskInput` is only set when the record yields a valid risk-score input
    (no unknown link status, finite temperature).
    """
    if record is None:
        return TelemetrySummary(
            satellite_id=satellite_id,
            no_data=True,
            battery_percent=0,
            temperature=0.0,
            communication_status=CommunicationStatus.UNKNOWN,
            risk_input=None,
        )

    temp = display_temperature(record)
    checked = validate(SchemaName.RISK_SCORE_INPUT, _risk_payload(record))

    return TelemetrySummary(
        satellite_id=satellite_id,
        no_data=False,
        battery_percent=battery_percent(record.battery_voltage),
        temperature=None if temp.no_data else temp.value_c,
        communication_status=communication_status(record.communication_logs.signal_strength),
        risk_input=checked.value if checked.ok else None,
        timestamp=record.timestamp,
    )


def to_risk_input(satellite_id: str, record: Optional[TelemetryRecord]) -> RiskScoreInput:
    if record is None:
        raise NotFoundError(satellite_id)
    checked = validate(SchemaName.RISK_SCORE_INPUT, _risk_payload(record))
    if not checked.ok:
        raise ValidationError(checked.violations, context=f"telemetry of {satellite_id}")
    return checked.value
