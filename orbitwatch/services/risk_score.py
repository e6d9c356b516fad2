"""
risk_score.py

Purpose:
  Ask the model for a 0-100 risk score from three coarse inputs
  (battery %, temperature, communication status).

Flow:
  validate input -> render prompt -> structured completion -> validate output -> result.

Single attempt, no caching: identical inputs may legitimately score differently.
"""
from __future__ import annotations

import logging
from typing import Any

from orbitwatch.errors import AIResponseError, ValidationError
from orbitwatch.models.domain import RiskScoreResult
from orbitwatch.schemas.contracts import SchemaName, validate
from orbitwatch.services.llm_client import CompletionClient
from orbitwatch.services.prompts import render_risk_score_prompt

logger = logging.getLogger(__name__)


class RiskScoreService:
    def __init__(self, client: CompletionClient):
        self.client = client

    async def compute_risk_score(self, payload: Any) -> RiskScoreResult:
        checked = validate(SchemaName.RISK_SCORE_INPUT, payload)
        if not checked.ok:
            raise ValidationError(checked.violations, context="risk score input")
        inp = checked.value

        prompt = render_risk_score_prompt(inp)
        logger.info(
            "Risk score request battery=%s temp=%s comm=%s",
            inp.battery_level, inp.temperature, inp.communication_status,
        )

        raw = await self.client.complete_structured(prompt, RiskScoreResult)

        out = validate(SchemaName.RISK_SCORE_OUTPUT, raw)
        if not out.ok:
            logger.error("Risk score output failed validation: %s | raw=%.500s", out.summary(), raw)
            raise AIResponseError(
                f"AI response failed validation: {out.summary()}",
                violations=out.violations,
                raw=str(raw),
            )

        logger.info("Risk score computed: %s", out.value.risk_score)
        return out.value
