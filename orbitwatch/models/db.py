from typing import Optional
from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, SQLModel, create_engine

from orbitwatch.models.domain import CommunicationLogs, TelemetryRecord, Vector3

# ============================================================
# DB MODELS
# ============================================================

class TelemetrySnapshot(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    satellite_id: str = Field(index=True)
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    # Attitude (deg/s, µT)
    gyro_x: float = 0.0
    gyro_y: float = 0.0
    gyro_z: float = 0.0
    mag_x: float = 0.0
    mag_y: float = 0.0
    mag_z: float = 0.0

    # Power / thermal
    battery_voltage: float = 0.0
    solar_panel_output: float = 0.0
    internal_temperature: float = 0.0
    external_temperature: float = 0.0

    # Link (nullable: missing readings fall back to no-contact sentinels on load)
    signal_strength: Optional[float] = None
    packet_delay: Optional[float] = None

    @classmethod
    def from_record(cls, record: TelemetryRecord) -> "TelemetrySnapshot":
        row = cls(
            satellite_id=record.id or "",
            gyro_x=record.gyroscope.x,
            gyro_y=record.gyroscope.y,
            gyro_z=record.gyroscope.z,
            mag_x=record.magnetometer.x,
            mag_y=record.magnetometer.y,
            mag_z=record.magnetometer.z,
            battery_voltage=record.battery_voltage,
            solar_panel_output=record.solar_panel_output,
            internal_temperature=record.internal_temperature,
            external_temperature=record.external_temperature,
            signal_strength=record.communication_logs.signal_strength,
            packet_delay=record.communication_logs.packet_delay,
        )
        if record.timestamp is not None:
            row.ts = record.timestamp
        return row

    def to_record(self) -> TelemetryRecord:
        comm = {}
        if self.signal_strength is not None:
            comm["signal_strength"] = self.signal_strength
        if self.packet_delay is not None:
            comm["packet_delay"] = self.packet_delay
        return TelemetryRecord(
            id=self.satellite_id,
            gyroscope=Vector3(x=self.gyro_x, y=self.gyro_y, z=self.gyro_z),
            magnetometer=Vector3(x=self.mag_x, y=self.mag_y, z=self.mag_z),
            battery_voltage=self.battery_voltage,
            solar_panel_output=self.solar_panel_output,
            internal_temperature=self.internal_temperature,
            external_temperature=self.external_temperature,
            communication_logs=CommunicationLogs(**comm),
            timestamp=self.ts,
        )

# ============================================================
# SETUP
# ============================================================

def make_engine(database_url: str) -> Engine:
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
