"""
deps.py

Purpose:
  Dependency Injection (DI) container for the application.
  Builds the process-wide instances of the telemetry source and the completion client,
  and hands the services an explicit client handle (no global AI singleton in services).

Services Managed:
  - `TelemetrySource` (simulated in-memory store or SQL store, per TELEMETRY_BACKEND)
  - `CompletionClient` (Gemini or OpenRouter, per LLM_PROVIDER)
  - `RiskScoreService`, `AnomalyExplanationService`

Pattern:
  - `lru_cache` keeps one instance per process.
  - Tests swap any of them through `app.dependency_overrides`.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from orbitwatch.config import Settings, load_settings
from orbitwatch.models.db import make_engine
from orbitwatch.services.anomaly_explainer import AnomalyExplanationService
from orbitwatch.services.llm_client import CompletionClient, build_completion_client
from orbitwatch.services.risk_score import RiskScoreService
from orbitwatch.services.telemetry_source import SimulatedTelemetrySource, TelemetrySource
from orbitwatch.services.telemetry_store import SqlTelemetrySource


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_telemetry_source() -> TelemetrySource:
    settings = get_settings()
    if settings.telemetry_backend == "sql":
        return SqlTelemetrySource(make_engine(settings.database_url))
    if settings.telemetry_backend != "simulated":
        raise ValueError(f"Unknown TELEMETRY_BACKEND: {settings.telemetry_backend!r} (expected 'simulated' or 'sql')")
    return SimulatedTelemetrySource(seed=settings.simulation_seed)


@lru_cache(maxsize=1)
def get_completion_client() -> CompletionClient:
    s = get_settings()
    return build_completion_client(
        s.llm_provider,
        gemini_api_key=s.gemini_api_key,
        gemini_model=s.gemini_model,
        openrouter_api_key=s.openrouter_api_key,
        openrouter_model=s.openrouter_model,
        openrouter_base_url=s.openrouter_base_url,
        timeout_s=s.llm_timeout_s,
    )


def get_risk_service(client: CompletionClient = Depends(get_completion_client)) -> RiskScoreService:
    return RiskScoreService(client)


def get_anomaly_service(
    client: CompletionClient = Depends(get_completion_client),
    source: TelemetrySource = Depends(get_telemetry_source),
) -> AnomalyExplanationService:
    return AnomalyExplanationService(client, source)
