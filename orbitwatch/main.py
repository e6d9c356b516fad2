"""FastAPI application: lifespan (simulator loop), CORS, request IDs, error mapping, routes."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from orbitwatch import __version__
from orbitwatch.api.error_handlers import register_error_handlers
from orbitwatch.api.routes_explain import router as explain_router
from orbitwatch.api.routes_health import router as health_router
from orbitwatch.api.routes_risk import router as risk_router
from orbitwatch.api.routes_telemetry import router as telemetry_router
from orbitwatch.api.routes_ws import router as ws_router
from orbitwatch.deps import get_settings, get_telemetry_source
from orbitwatch.services.telemetry_source import SimulatedTelemetrySource

# Load .env before anything else
load_dotenv()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("orbitwatch")


async def _simulation_loop(source: SimulatedTelemetrySource, interval_s: float) -> None:
    logger.info("Telemetry simulation started (every %.1fs)", interval_s)
    while True:
        await asyncio.sleep(interval_s)
        source.tick()


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    source = app.dependency_overrides.get(get_telemetry_source, get_telemetry_source)()
    if settings.simulation_enabled and isinstance(source, SimulatedTelemetrySource):
        task = asyncio.create_task(_simulation_loop(source, settings.simulation_interval_s))
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Telemetry simulation stopped")


app = FastAPI(
    title="OrbitWatch Backend",
    version=__version__,
    description="CubeSat telemetry dashboard backend with model-assisted risk scoring and anomaly explanations.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "%s %s -> %s (%.1f ms) [%s]",
        request.method, request.url.path, response.status_code,
        (time.perf_counter() - started) * 1000.0, request_id,
    )
    return response


register_error_handlers(app)

app.include_router(health_router)
app.include_router(telemetry_router, prefix="/telemetry", tags=["telemetry"])
app.include_router(risk_router, prefix="/risk-score", tags=["ai"])
app.include_router(explain_router, prefix="/anomaly-explanation", tags=["ai"])
app.include_router(ws_router)

# Run:
#   uvicorn orbitwatch.main:app --reload --port 8000
