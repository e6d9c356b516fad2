"""
routes_risk.py

Purpose:
  Risk-score endpoints. Only fire on explicit POST (button click), never automatically.

Endpoints:
  - POST /risk-score: body is a RiskScoreInput JSON, returns RiskScoreOutput JSON.
  - POST /risk-score/from-telemetry: body `{satelliteId}`; normalizes the satellite's current
    telemetry into a RiskScoreInput, then scores it.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from orbitwatch.deps import get_risk_service, get_telemetry_source
from orbitwatch.errors import ValidationError
from orbitwatch.models.domain import ErrorResponse, RiskScoreResult
from orbitwatch.schemas.contracts import SchemaName, validate
from orbitwatch.services.normalizer import to_risk_input
from orbitwatch.services.risk_score import RiskScoreService
from orbitwatch.services.telemetry_source import TelemetrySource

router = APIRouter()

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 404, 500)}


@router.post("", response_model=RiskScoreResult, responses=_ERRORS)
async def risk_score(
    payload: Any = Body(...),
    svc: RiskScoreService = Depends(get_risk_service),
) -> RiskScoreResult:
    return await svc.compute_risk_score(payload)


@router.post("/from-telemetry", response_model=RiskScoreResult, responses=_ERRORS)
async def risk_score_from_telemetry(
    payload: Any = Body(...),
    svc: RiskScoreService = Depends(get_risk_service),
    source: TelemetrySource = Depends(get_telemetry_source),
) -> RiskScoreResult:
    checked = validate(SchemaName.ANOMALY_EXPLANATION_INPUT, payload)
    if not checked.ok:
        raise ValidationError(checked.violations, context="request")
    sid = checked.value.satellite_id

    record = await source.fetch(sid)
    return await svc.compute_risk_score(to_risk_input(sid, record))
