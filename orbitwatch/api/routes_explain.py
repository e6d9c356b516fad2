"""
routes_explain.py

Purpose:
  API endpoint for model-generated explanations of a satellite's anomaly risk.
  Only fires on explicit POST request (button click), never automatically.

Endpoints:
  - POST /anomaly-explanation: body `{satelliteId}`, returns AnomalyExplanationOutput JSON.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from orbitwatch.deps import get_anomaly_service
from orbitwatch.errors import ValidationError
from orbitwatch.models.domain import AnomalyExplanationResult, ErrorResponse
from orbitwatch.schemas.contracts import SchemaName, validate
from orbitwatch.services.anomaly_explainer import AnomalyExplanationService

router = APIRouter()


@router.post(
    "",
    response_model=AnomalyExplanationResult,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 404, 500)},
)
async def anomaly_explanation(
    payload: Any = Body(...),
    svc: AnomalyExplanationService = Depends(get_anomaly_service),
) -> AnomalyExplanationResult:
    checked = validate(SchemaName.ANOMALY_EXPLANATION_INPUT, payload)
    if not checked.ok:
        raise ValidationError(checked.violations, context="request")
    return await svc.explain_anomaly(checked.value.satellite_id)
