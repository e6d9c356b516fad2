import asyncio

import pytest

from orbitwatch.errors import (
    AIErrorKind,
    AIInvocationError,
    AIResponseError,
    NotFoundError,
    ValidationError,
)
from orbitwatch.models.domain import (
    AnomalyExplanationResult,
    CommunicationLogs,
    RiskScoreInput,
    RiskScoreResult,
    TelemetryRecord,
    Vector3,
)
from orbitwatch.schemas.contracts import SchemaName, validate
from orbitwatch.services.anomaly_explainer import AnomalyExplanationService
from orbitwatch.services.risk_score import RiskScoreService
from orbitwatch.services.telemetry_source import SimulatedTelemetrySource


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def known_record():
    return TelemetryRecord(
        id="cubesat-007",
        gyroscope=Vector3(x=0.125, y=-0.5, z=1.75),
        magnetometer=Vector3(x=0.0123, y=-0.0456, z=0.0789),
        battery_voltage=3.62,
        solar_panel_output=0.4,
        internal_temperature=39.5,
        external_temperature=-31.0,
        communication_logs=CommunicationLogs(signal_strength=-97.0, packet_delay=310.0),
    )


@pytest.fixture
def source(known_record):
    src = SimulatedTelemetrySource(satellite_ids=(), seed=1)
    src.ingest(known_record)
    return src


# ============================================================
# RISK SCORE
# ============================================================

def test_risk_score_returns_validated_result(fake_llm):
    fake_llm.reply = {"riskScore": 87, "explanation": "Low battery, hot and no link."}
    svc = RiskScoreService(fake_llm)

    result = run(svc.compute_risk_score({"batteryLevel": 10, "temperature": 90, "communicationStatus": "lost"}))

    assert isinstance(result, RiskScoreResult)
    assert validate(SchemaName.RISK_SCORE_OUTPUT, result).ok
    assert 0 <= result.risk_score <= 100
    assert result.explanation

    prompt, schema = fake_llm.calls[0]
    assert schema is RiskScoreResult
    assert "Battery Level: 10" in prompt
    assert "Temperature: 90" in prompt
    assert "Communication Status: lost" in prompt


def test_risk_score_accepts_typed_input(fake_llm):
    fake_llm.reply = {"riskScore": 5, "explanation": "Nominal."}
    inp = RiskScoreInput(battery_level=95.0, temperature=21.0, communication_status="stable")
    assert run(RiskScoreService(fake_llm).compute_risk_score(inp)).risk_score == 5


def test_risk_score_rejects_bad_input_before_calling_model(fake_llm):
    svc = RiskScoreService(fake_llm)
    with pytest.raises(ValidationError) as exc:
        run(svc.compute_risk_score({"batteryLevel": 150, "temperature": 20, "communicationStatus": "stable"}))
    assert exc.value.fields == ("batteryLevel",)
    assert fake_llm.calls == []


@pytest.mark.parametrize("reply", [
    {"explanation": "forgot the score"},
    {"riskScore": 140, "explanation": "too high"},
    {"riskScore": 50, "explanation": ""},
    "not an object",
])
def test_risk_score_invalid_model_output_is_response_error(fake_llm, reply):
    fake_llm.reply = reply
    with pytest.raises(AIResponseError) as exc:
        run(RiskScoreService(fake_llm).compute_risk_score(
            {"batteryLevel": 50, "temperature": 20, "communicationStatus": "stable"}
        ))
    assert exc.value.violations


def test_risk_score_invocation_error_passes_through(fake_llm):
    fake_llm.error = AIInvocationError(AIErrorKind.RATE_LIMITED, "slow down", provider="fake")
    with pytest.raises(AIInvocationError) as exc:
        run(RiskScoreService(fake_llm).compute_risk_score(
            {"batteryLevel": 50, "temperature": 20, "communicationStatus": "unstable"}
        ))
    assert exc.value.kind is AIErrorKind.RATE_LIMITED
    assert exc.value.terminal is True
    assert len(fake_llm.calls) == 1


# ============================================================
# ANOMALY EXPLANATION
# ============================================================

GOOD_ANOMALY = {
    "explanation": "Battery and link are critical while the bus runs hot.",
    "breakdown": {"thermal": 30, "comm": 35, "power": 30, "orientation": 5},
}


def test_explain_anomaly_embeds_every_reading(fake_llm, source):
    fake_llm.reply = GOOD_ANOMALY
    result = run(AnomalyExplanationService(fake_llm, source).explain_anomaly("cubesat-007"))

    assert isinstance(result, AnomalyExplanationResult)
    assert result.breakdown.comm == 35

    prompt, schema = fake_llm.calls[0]
    assert schema is AnomalyExplanationResult
    for value in ("3.62", "0.4", "39.5", "-31.0", "0.125", "-0.5", "1.75",
                  "0.0123", "-0.0456", "0.0789", "-97.0", "310.0"):
        assert value in prompt
    assert "cubesat-007" in prompt


def test_explain_anomaly_prompt_carries_threshold_guidance(fake_llm, source):
    fake_llm.reply = GOOD_ANOMALY
    run(AnomalyExplanationService(fake_llm, source).explain_anomaly("cubesat-007"))
    prompt = fake_llm.calls[0][0]
    for guidance in ("1 deg/s", "10 µT", "3.65 V", "3.75 V", "0.5 W", "38°C", "35°C",
                     "[-30, 50]°C", "-95 dBm", "-90 dBm", "300 ms", "250 ms"):
        assert guidance in prompt


def test_explain_anomaly_unknown_satellite_is_not_found(fake_llm, source):
    with pytest.raises(NotFoundError) as exc:
        run(AnomalyExplanationService(fake_llm, source).explain_anomaly("unknown-sat-id"))
    assert "unknown-sat-id" in str(exc.value)
    assert exc.value.satellite_id == "unknown-sat-id"
    assert fake_llm.calls == []


@pytest.mark.parametrize("satellite_id", ["", None, 42])
def test_explain_anomaly_rejects_bad_id(fake_llm, source, satellite_id):
    with pytest.raises(ValidationError) as exc:
        run(AnomalyExplanationService(fake_llm, source).explain_anomaly(satellite_id))
    assert exc.value.fields == ("satelliteId",)


def test_explain_anomaly_invalid_breakdown(fake_llm, source):
    fake_llm.reply = {"explanation": "x", "breakdown": {"thermal": 101, "comm": 0, "power": 0, "orientation": 0}}
    with pytest.raises(AIResponseError) as exc:
        run(AnomalyExplanationService(fake_llm, source).explain_anomaly("cubesat-007"))
    assert [v.field for v in exc.value.violations] == ["breakdown.thermal"]


@pytest.mark.parametrize("kind", list(AIErrorKind))
def test_explain_anomaly_invocation_errors_keep_their_kind(fake_llm, source, kind):
    fake_llm.error = AIInvocationError(kind, "boom", provider="fake")
    with pytest.raises(AIInvocationError) as exc:
        run(AnomalyExplanationService(fake_llm, source).explain_anomaly("cubesat-007"))
    assert exc.value.kind is kind


def test_concurrent_calls_do_not_interfere(source):
    class EchoClient:
        provider = "echo"

        async def complete_structured(self, prompt, output_schema):
            await asyncio.sleep(0)
            if output_schema is RiskScoreResult:
                level = float(prompt.split("Battery Level: ")[1].split("%")[0])
                return {"riskScore": 100 - level, "explanation": f"battery {level}"}
            return GOOD_ANOMALY

    risk = RiskScoreService(EchoClient())
    anomaly = AnomalyExplanationService(EchoClient(), source)

    async def scenario():
        return await asyncio.gather(
            risk.compute_risk_score({"batteryLevel": 10, "temperature": 1, "communicationStatus": "lost"}),
            risk.compute_risk_score({"batteryLevel": 80, "temperature": 1, "communicationStatus": "stable"}),
            anomaly.explain_anomaly("cubesat-007"),
        )

    low, high, explained = run(scenario())
    assert low.risk_score == 90
    assert high.risk_score == 20
    assert explained.breakdown.thermal == 30
