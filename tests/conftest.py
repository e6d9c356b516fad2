import os

# Keep the app hermetic: no simulator loop, no real credentials.
os.environ["SIMULATION_ENABLED"] = "false"
os.environ["TELEMETRY_BACKEND"] = "simulated"
os.environ["LLM_PROVIDER"] = "gemini"
for _key in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GOOGLE_GENAI_API_KEY", "OPENROUTER_API_KEY"):
    os.environ.pop(_key, None)

import pytest
from fastapi.testclient import TestClient

from orbitwatch.deps import get_completion_client, get_telemetry_source
from orbitwatch.models.db import make_engine
from orbitwatch.services.telemetry_source import SimulatedTelemetrySource
from orbitwatch.services.telemetry_store import SqlTelemetrySource


class FakeCompletionClient:
    """Scripted stand-in for the model: returns `reply` or raises `error`, recording prompts."""

    provider = "fake"

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete_structured(self, prompt, output_schema):
        self.calls.append((prompt, output_schema))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_llm():
    return FakeCompletionClient()


@pytest.fixture
def telemetry_source():
    return SimulatedTelemetrySource(seed=7)


@pytest.fixture
def client(fake_llm, telemetry_source):
    from orbitwatch.main import app

    app.dependency_overrides[get_completion_client] = lambda: fake_llm
    app.dependency_overrides[get_telemetry_source] = lambda: telemetry_source
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sql_store():
    return SqlTelemetrySource(make_engine("sqlite://"))


@pytest.fixture
def sql_client(fake_llm, sql_store):
    from orbitwatch.main import app

    app.dependency_overrides[get_completion_client] = lambda: fake_llm
    app.dependency_overrides[get_telemetry_source] = lambda: sql_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
