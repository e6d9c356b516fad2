"""
anomaly_explainer.py

Purpose:
  Explain the anomaly risk of one satellite: fetch its current telemetry, hand every reading
  plus the fixed category guidelines to the model, and return a validated explanation with a
  per-category breakdown (thermal / comm / power / orientation, each 0-100).

Contract:
  - Missing telemetry is a `NotFoundError`; no zeroed record is fabricated on this path.
  - The model does the classification; this service only checks the shape of its answer.
"""
from __future__ import annotations

import logging
from typing import Any

from orbitwatch.errors import AIInvocationError, AIResponseError, NotFoundError, ValidationError
from orbitwatch.models.domain import AnomalyExplanationResult
from orbitwatch.schemas.contracts import SchemaName, validate
from orbitwatch.services.llm_client import CompletionClient
from orbitwatch.services.prompts import render_anomaly_prompt
from orbitwatch.services.telemetry_source import TelemetrySource

logger = logging.getLogger(__name__)


class AnomalyExplanationService:
    def __init__(self, client: CompletionClient, source: TelemetrySource):
        self.client = client
        self.source = source

    async def explain_anomaly(self, satellite_id: Any) -> AnomalyExplanationResult:
        checked = validate(SchemaName.ANOMALY_EXPLANATION_INPUT, {"satelliteId": satellite_id})
        if not checked.ok:
            raise ValidationError(checked.violations, context="anomaly explanation input")
        sid = checked.value.satellite_id

        record = await self.source.fetch(sid)
        if record is None:
            logger.error("No telemetry data found for satellite ID: %s", sid)
            raise NotFoundError(sid)

        prompt = render_anomaly_prompt(sid, record)
        try:
            raw = await self.client.complete_structured(prompt, AnomalyExplanationResult)
        except AIInvocationError as exc:
            logger.error("Anomaly explanation for %s failed kind=%s: %s", sid, exc.kind.value, exc)
            raise
        except AIResponseError as exc:
            logger.error("Anomaly explanation for %s got an unusable reply: %s | raw=%s", sid, exc, exc.raw)
            raise

        out = validate(SchemaName.ANOMALY_EXPLANATION_OUTPUT, raw)
        if not out.ok:
            logger.error("AI output validation failed for %s: %s | raw=%.500s", sid, out.summary(), raw)
            raise AIResponseError(
                f"AI output failed validation for {sid}: {out.summary()}",
                violations=out.violations,
                raw=str(raw),
            )

        return out.value
