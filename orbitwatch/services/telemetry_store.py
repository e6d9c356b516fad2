"""
telemetry_store.py

Purpose:
  SQL-backed telemetry source (SQLModel). Readings are appended as `TelemetrySnapshot`
  rows; `fetch` answers with the newest row of a satellite. Ingested readings are pushed
  to live subscribers through the same `TelemetryHub` the simulator uses.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from orbitwatch.models.db import TelemetrySnapshot, create_db_and_tables
from orbitwatch.models.domain import TelemetryRecord
from orbitwatch.services.telemetry_source import OnData, OnError, TelemetryHub, Unsubscribe

logger = logging.getLogger(__name__)


class SqlTelemetrySource:
    def __init__(self, engine: Engine, hub: Optional[TelemetryHub] = None):
        self.engine = engine
        self.hub = hub or TelemetryHub()
        create_db_and_tables(engine)

    def latest(self, satellite_id: str) -> Optional[TelemetryRecord]:
        with Session(self.engine) as session:
            stmt = (
                select(TelemetrySnapshot)
                .where(TelemetrySnapshot.satellite_id == satellite_id)
                .order_by(col(TelemetrySnapshot.ts).desc(), col(TelemetrySnapshot.id).desc())
                .limit(1)
            )
            row = session.exec(stmt).first()
            return row.to_record() if row is not None else None

    async def fetch(self, satellite_id: str) -> Optional[TelemetryRecord]:
        return await asyncio.to_thread(self.latest, satellite_id)

    def list_satellites(self) -> List[str]:
        with Session(self.engine) as session:
            stmt = select(TelemetrySnapshot.satellite_id).distinct().order_by(TelemetrySnapshot.satellite_id)
            return list(session.exec(stmt).all())

    def ingest(self, record: TelemetryRecord) -> TelemetryRecord:
        if not record.id:
            raise ValueError("telemetry record needs an id to be stored")
        row = TelemetrySnapshot.from_record(record)
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            stored = row.to_record()
        logger.debug("Stored telemetry snapshot for %s at %s", stored.id, stored.timestamp)
        self.hub.publish(record.id, stored)
        return stored

    def subscribe(self, satellite_id: str, on_data: OnData, on_error: Optional[OnError] = None) -> Unsubscribe:
        return self.hub.subscribe_with_snapshot(satellite_id, self.latest(satellite_id), on_data, on_error)
