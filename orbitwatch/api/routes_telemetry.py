from __future__ import annotations

import asyncio
import json
from typing import Any, List, Optional, Tuple

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError as PydanticValidationError
from sse_starlette.sse import EventSourceResponse

from orbitwatch.deps import get_telemetry_source
from orbitwatch.errors import NotFoundError, ValidationError
from orbitwatch.models.domain import (
    SatelliteListResponse,
    TelemetryAlert,
    TelemetryRecord,
    TelemetrySummary,
)
from orbitwatch.schemas.contracts import FieldViolation, ViolationKind, violations_from
from orbitwatch.services.alerts import generate_alerts
from orbitwatch.services.normalizer import summarize
from orbitwatch.services.telemetry_source import TelemetrySource, Unsubscribe

router = APIRouter()


class LatestRecordChannel:
    """
    Bridges a push subscription onto the event loop. Holds at most one pending item:
    a newer record replaces an undelivered one (full replacement, no backlog).
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def _offer(self, item: Tuple[str, Any]) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def on_data(self, record: Optional[TelemetryRecord]) -> None:
        self._loop.call_soon_threadsafe(self._offer, ("data", record))

    def on_error(self, exc: Exception) -> None:
        self._loop.call_soon_threadsafe(self._offer, ("error", exc))

    async def get(self) -> Tuple[str, Any]:
        return await self._queue.get()


async def open_channel(source: TelemetrySource, satellite_id: str) -> Tuple[LatestRecordChannel, Unsubscribe]:
    """Subscribe off the event loop: a store may read its snapshot with a blocking query."""
    channel = LatestRecordChannel(asyncio.get_running_loop())
    unsubscribe = await asyncio.to_thread(source.subscribe, satellite_id, channel.on_data, channel.on_error)
    return channel, unsubscribe


def event_payload(satellite_id: str, kind: str, item: Any) -> Tuple[str, dict]:
    """(event name, JSON body) for one channel item; shared by SSE and WebSocket feeds."""
    if kind == "error":
        return "error", {"satelliteId": satellite_id, "error": str(item)}
    if item is None:
        return "no-data", {"satelliteId": satellite_id}
    return "telemetry", item.to_document()


@router.get("/satellites", response_model=SatelliteListResponse)
async def list_satellites(source: TelemetrySource = Depends(get_telemetry_source)) -> SatelliteListResponse:
    return SatelliteListResponse(satellites=await asyncio.to_thread(source.list_satellites))


@router.get("/{satellite_id}", response_model=TelemetryRecord)
async def telemetry_latest(
    satellite_id: str,
    source: TelemetrySource = Depends(get_telemetry_source),
) -> TelemetryRecord:
    record = await source.fetch(satellite_id)
    if record is None:
        raise NotFoundError(satellite_id)
    return record


@router.post("/{satellite_id}", response_model=TelemetryRecord, status_code=201)
async def telemetry_ingest(
    satellite_id: str,
    payload: Any = Body(...),
    source: TelemetrySource = Depends(get_telemetry_source),
) -> TelemetryRecord:
    """
    Store a new reading for one satellite and push it to live subscribers.
    The path ID wins over any `id` in the body; missing readings get the usual defaults.
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            [FieldViolation("<root>", ViolationKind.WRONG_TYPE, f"expected a JSON object, got {type(payload).__name__}")],
            context="telemetry record",
        )
    try:
        record = TelemetryRecord.from_document({**payload, "id": satellite_id})
    except PydanticValidationError as exc:
        raise ValidationError(violations_from(exc), context="telemetry record") from exc
    return await asyncio.to_thread(source.ingest, record)


@router.get("/{satellite_id}/summary", response_model=TelemetrySummary)
async def telemetry_summary(
    satellite_id: str,
    source: TelemetrySource = Depends(get_telemetry_source),
) -> TelemetrySummary:
    """
    Dashboard tiles: battery %, temperature, comm status.
    A satellite without telemetry answers `noData: true` instead of a zero reading.
    """
    return summarize(satellite_id, await source.fetch(satellite_id))


@router.get("/{satellite_id}/alerts", response_model=List[TelemetryAlert])
async def telemetry_alerts(
    satellite_id: str,
    source: TelemetrySource = Depends(get_telemetry_source),
) -> List[TelemetryAlert]:
    record = await source.fetch(satellite_id)
    if record is None:
        raise NotFoundError(satellite_id)
    return generate_alerts(record)


@router.get("/{satellite_id}/stream", response_class=EventSourceResponse)
async def telemetry_stream(
    satellite_id: str,
    source: TelemetrySource = Depends(get_telemetry_source),
):
    """
    Streams every full replacement record for one satellite (SSE).
    The subscription is cancelled when the client goes away.
    """
    channel, unsubscribe = await open_channel(source, satellite_id)

    async def event_generator():
        try:
            while True:
                kind, item = await channel.get()
                event, body = event_payload(satellite_id, kind, item)
                yield {"event": event, "data": json.dumps(body)}
        finally:
            unsubscribe()

    return EventSourceResponse(event_generator())
