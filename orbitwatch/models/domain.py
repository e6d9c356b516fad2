from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# 0) ENUMS (Type Safety)
# ============================================================

class CommunicationStatus(str, Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"
    LOST = "lost"
    UNKNOWN = "unknown"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class AlertCategory(str, Enum):
    THERMAL = "thermal"
    POWER = "power"
    COMM = "comm"


# Sentinel "no contact" values for a record that exists but carries no link data.
NO_CONTACT_SIGNAL_DBM = -120.0
NO_CONTACT_PACKET_DELAY_MS = 999.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# 1) TELEMETRY (external document, read-only to the pipeline)
# ============================================================

class Vector3(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class CommunicationLogs(_CamelModel):
    signal_strength: float = Field(NO_CONTACT_SIGNAL_DBM, alias="signalStrength")  # dBm
    packet_delay: float = Field(NO_CONTACT_PACKET_DELAY_MS, alias="packetDelay")  # ms


class TelemetryRecord(_CamelModel):
    """
    One sensor snapshot for one satellite.

    Every numeric field is always populated: documents missing a reading are
    defaulted on load (vectors/scalars to 0, link data to the no-contact sentinels).
    """
    id: Optional[str] = None
    gyroscope: Vector3 = Field(default_factory=Vector3)  # deg/s
    magnetometer: Vector3 = Field(default_factory=Vector3)  # µT
    battery_voltage: float = Field(0.0, alias="batteryVoltage")  # V
    solar_panel_output: float = Field(0.0, alias="solarPanelOutput")  # W
    internal_temperature: float = Field(0.0, alias="internalTemperature")  # °C
    external_temperature: float = Field(0.0, alias="externalTemperature")  # °C
    communication_logs: CommunicationLogs = Field(default_factory=CommunicationLogs, alias="communicationLogs")
    timestamp: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], satellite_id: Optional[str] = None) -> "TelemetryRecord":
        data: Dict[str, Any] = {k: v for k, v in dict(doc).items() if v is not None}
        snake = data.pop("communication_logs", None)
        comm = data.pop("communicationLogs", None) or snake or {}
        if isinstance(comm, Mapping):
            comm = {k: v for k, v in comm.items() if v is not None}
        data["communicationLogs"] = comm
        if satellite_id is not None and not data.get("id"):
            data["id"] = satellite_id
        return cls.model_validate(data)

    @classmethod
    def placeholder(cls, satellite_id: Optional[str] = None) -> "TelemetryRecord":
        return cls(id=satellite_id)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================
# 2) RISK SCORE CONTRACT
# ============================================================
# Strict typing: JSON numbers only (no "50" strings, no booleans), no NaN/inf.

_STRICT = ConfigDict(populate_by_name=True, allow_inf_nan=False)

RiskCommunicationStatus = Literal["stable", "unstable", "lost"]


class RiskScoreInput(BaseModel):
    model_config = _STRICT

    battery_level: float = Field(..., alias="batteryLevel", strict=True, ge=0.0, le=100.0,
                                 description="Battery level in percentage (0-100).")
    temperature: float = Field(..., strict=True, description="Temperature in degrees Celsius.")
    communication_status: RiskCommunicationStatus = Field(..., alias="communicationStatus",
                                                          description="Communication status.")


class RiskScoreResult(BaseModel):
    model_config = _STRICT

    risk_score: float = Field(..., alias="riskScore", strict=True, ge=0.0, le=100.0,
                              description="The calculated risk score (0-100).")
    explanation: str = Field(..., strict=True, min_length=1,
                             description="Explanation of the risk score (1-2 sentences).")


# ============================================================
# 3) ANOMALY EXPLANATION CONTRACT
# ============================================================

class AnomalyExplanationInput(BaseModel):
    model_config = _STRICT

    satellite_id: str = Field(..., alias="satelliteId", strict=True, min_length=1)


class AnomalyBreakdown(BaseModel):
    """Per-category contribution, each independently bounded; no sum rule."""
    model_config = _STRICT

    thermal: float = Field(..., strict=True, ge=0.0, le=100.0)
    comm: float = Field(..., strict=True, ge=0.0, le=100.0)
    power: float = Field(..., strict=True, ge=0.0, le=100.0)
    orientation: float = Field(..., strict=True, ge=0.0, le=100.0)


class AnomalyExplanationResult(BaseModel):
    model_config = _STRICT

    explanation: str = Field(..., strict=True, min_length=1)
    breakdown: AnomalyBreakdown


# ============================================================
# 4) DASHBOARD READINGS
# ============================================================

class TemperatureReading(BaseModel):
    value_c: float
    no_data: bool


class TelemetrySummary(_CamelModel):
    satellite_id: str = Field(..., alias="satelliteId")
    no_data: bool = Field(..., alias="noData")
    battery_percent: int = Field(..., alias="batteryPercent")
    temperature: Optional[float] = None  # °C; null when the reading is not finite
    communication_status: CommunicationStatus = Field(..., alias="communicationStatus")
    risk_input: Optional[RiskScoreInput] = Field(None, alias="riskInput")
    timestamp: Optional[datetime] = None


class TelemetryAlert(BaseModel):
    id: str
    category: AlertCategory
    severity: AlertSeverity
    title: str
    description: str
    ts: datetime


class SatelliteListResponse(BaseModel):
    satellites: List[str]


class HealthResponse(BaseModel):
    status: str
    ts: str


class ErrorResponse(BaseModel):
    error: str
