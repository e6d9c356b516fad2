from __future__ import annotations

import asyncio
import logging
from fastapi import APIRouter, Depends, WebSocket

from orbitwatch.api.routes_telemetry import event_payload, open_channel
from orbitwatch.deps import get_telemetry_source
from orbitwatch.services.telemetry_source import TelemetrySource

router = APIRouter()
logger = logging.getLogger(__name__)

@router.websocket("/ws/telemetry/{satellite_id}")
async def ws_telemetry(
    websocket: WebSocket,
    satellite_id: str,
    source: TelemetrySource = Depends(get_telemetry_source),
):
    """
    WebSocket push of every full replacement record for one satellite.
    Matches the SSE payload shape so the frontend can switch easily.
    """
    await websocket.accept()
    channel, unsubscribe = await open_channel(source, satellite_id)

    async def pump() -> None:
        while True:
            kind, item = await channel.get()
            event, body = event_payload(satellite_id, kind, item)
            await websocket.send_json({"event": event, "data": body})

    sender = asyncio.create_task(pump())
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Telemetry websocket for %s closed with an error", satellite_id)
