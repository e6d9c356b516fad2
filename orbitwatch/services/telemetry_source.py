"""
telemetry_source.py

Purpose:
  Read-side adapter over the telemetry store: one-shot fetch and live push subscription,
  keyed by satellite ID.

Key Responsibilities:
  - **TelemetryHub**: thread-safe listener registry. Each publish delivers a full replacement
    record; nothing is merged or buffered. Unsubscribing stops delivery immediately, including
    for a publish already in flight.
  - **SimulatedTelemetrySource**: in-memory store for the known CubeSats with random but
    plausible readings. `tick()` regenerates every satellite and publishes.

Future Work:
  - A Firestore-backed source would implement the same `TelemetrySource` protocol.
"""
from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from orbitwatch.models.domain import CommunicationLogs, TelemetryRecord, Vector3

logger = logging.getLogger(__name__)

OnData = Callable[[Optional[TelemetryRecord]], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

KNOWN_SATELLITE_IDS = ("cubesat-001", "cubesat-002", "cubesat-003")


class TelemetrySource(Protocol):
    async def fetch(self, satellite_id: str) -> Optional[TelemetryRecord]: ...

    def subscribe(self, satellite_id: str, on_data: OnData, on_error: Optional[OnError] = None) -> Unsubscribe: ...

    def list_satellites(self) -> List[str]: ...

    def ingest(self, record: TelemetryRecord) -> TelemetryRecord: ...


@dataclass(eq=False)
class _Subscription:
    satellite_id: str
    on_data: OnData
    on_error: Optional[OnError]
    active: bool = True


class TelemetryHub:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subs: Dict[str, List[_Subscription]] = {}

    def subscribe(self, satellite_id: str, on_data: OnData, on_error: Optional[OnError] = None) -> Unsubscribe:
        sub = _Subscription(satellite_id=satellite_id, on_data=on_data, on_error=on_error)
        with self._lock:
            self._subs.setdefault(satellite_id, []).append(sub)

        def unsubscribe() -> None:
            with self._lock:
                sub.active = False
                subs = self._subs.get(satellite_id)
                if subs and sub in subs:
                    subs.remove(sub)
                if subs is not None and not subs:
                    self._subs.pop(satellite_id, None)

        return unsubscribe

    def listener_count(self, satellite_id: str) -> int:
        with self._lock:
            return len(self._subs.get(satellite_id, []))

    def publish(self, satellite_id: str, record: Optional[TelemetryRecord]) -> None:
        with self._lock:
            subs = list(self._subs.get(satellite_id, []))
        for sub in subs:
            self.deliver(sub, record)

    def deliver(self, sub: _Subscription, record: Optional[TelemetryRecord]) -> None:
        # Holding the lock across the callback makes unsubscribe() wait for an in-flight
        # delivery, so nothing is delivered once it returns.
        with self._lock:
            if not sub.active:
                return
            try:
                sub.on_data(record)
            except Exception as exc:
                logger.exception("Telemetry listener for %s failed", sub.satellite_id)
                if sub.on_error is not None:
                    sub.on_error(exc)

    def subscribe_with_snapshot(
        self,
        satellite_id: str,
        snapshot: Optional[TelemetryRecord],
        on_data: OnData,
        on_error: Optional[OnError] = None,
    ) -> Unsubscribe:
        """Register a listener and hand it the current record right away."""
        with self._lock:
            unsubscribe = self.subscribe(satellite_id, on_data, on_error)
            sub = self._subs[satellite_id][-1]
            self.deliver(sub, snapshot)
        return unsubscribe


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SimulatedTelemetrySource:
    """
    Stand-in for the document store. Readings per satellite:
      battery 3.6-4.2 V, solar 0-6 W, internal 15-40 °C, external -20-30 °C,
      gyro ±1 deg/s, magnetometer ±0.1 µT, signal -100..-55 dBm, delay 50-350 ms.
    """

    def __init__(self, satellite_ids=KNOWN_SATELLITE_IDS, seed: Optional[int] = None, hub: Optional[TelemetryHub] = None):
        self._rng = random.Random(seed)
        self.hub = hub or TelemetryHub()
        self._lock = threading.Lock()
        self._latest: Dict[str, TelemetryRecord] = {sid: self._generate(sid) for sid in satellite_ids}
        logger.info("Simulated telemetry store initialised for %s", ", ".join(self._latest))

    def _generate(self, satellite_id: str) -> TelemetryRecord:
        r = self._rng
        return TelemetryRecord(
            id=satellite_id,
            gyroscope=Vector3(x=r.uniform(-1, 1), y=r.uniform(-1, 1), z=r.uniform(-1, 1)),
            battery_voltage=3.6 + r.random() * 0.6,
            solar_panel_output=r.random() * 6,
            internal_temperature=15 + r.random() * 25,
            external_temperature=-20 + r.random() * 50,
            magnetometer=Vector3(x=r.uniform(-0.1, 0.1), y=r.uniform(-0.1, 0.1), z=r.uniform(-0.1, 0.1)),
            communication_logs=CommunicationLogs(
                signal_strength=-100 + r.random() * 45,
                packet_delay=50 + r.random() * 300,
            ),
            timestamp=_utcnow(),
        )

    def list_satellites(self) -> List[str]:
        with self._lock:
            return sorted(self._latest)

    async def fetch(self, satellite_id: str) -> Optional[TelemetryRecord]:
        with self._lock:
            return self._latest.get(satellite_id)

    def subscribe(self, satellite_id: str, on_data: OnData, on_error: Optional[OnError] = None) -> Unsubscribe:
        with self._lock:
            current = self._latest.get(satellite_id)
        if current is None:
            logger.warning("Subscription to unknown satellite ID %s; no simulation data available", satellite_id)
        return self.hub.subscribe_with_snapshot(satellite_id, current, on_data, on_error)

    def ingest(self, record: TelemetryRecord) -> TelemetryRecord:
        """Replace the latest record of one satellite and push it to listeners."""
        if not record.id:
            raise ValueError("telemetry record needs an id to be stored")
        with self._lock:
            self._latest[record.id] = record
        self.hub.publish(record.id, record)
        return record

    def tick(self) -> None:
        for sid in self.list_satellites():
            self.ingest(self._generate(sid))
