from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

_TRUE = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in _TRUE


def env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


def env_str(name: str, default: str = "") -> str:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip()


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        val = env_str(name)
        if val:
            return val
    return None


@dataclass(frozen=True)
class Settings:
    llm_provider: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-pro"
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "openai/gpt-3.5-turbo"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_timeout_s: float = 30.0

    telemetry_backend: str = "simulated"
    simulation_enabled: bool = True
    simulation_interval_s: float = 2.0
    simulation_seed: Optional[int] = None
    database_url: str = "sqlite:///orbitwatch.db"

    allowed_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Snapshot the environment into an immutable Settings record."""
    origins = env_str("ALLOWED_ORIGINS", "*")
    seed_raw = env_str("SIMULATION_SEED")
    seed: Optional[int] = None
    if seed_raw:
        try:
            seed = int(seed_raw)
        except ValueError:
            seed = None

    return Settings(
        llm_provider=env_str("LLM_PROVIDER", "gemini").lower(),
        gemini_api_key=_first_env("GEMINI_API_KEY", "GOOGLE_API_KEY", "GOOGLE_GENAI_API_KEY"),
        gemini_model=env_str("GEMINI_MODEL_ID", "gemini-1.5-pro"),
        openrouter_api_key=_first_env("OPENROUTER_API_KEY"),
        openrouter_model=env_str("OPENROUTER_MODEL_ID", "openai/gpt-3.5-turbo"),
        openrouter_base_url=env_str("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/"),
        llm_timeout_s=env_float("LLM_TIMEOUT_S", 30.0),
        telemetry_backend=env_str("TELEMETRY_BACKEND", "simulated").lower(),
        simulation_enabled=env_flag("SIMULATION_ENABLED", True),
        simulation_interval_s=env_float("SIMULATION_INTERVAL_S", 2.0),
        simulation_seed=seed,
        database_url=env_str("DATABASE_URL", "sqlite:///orbitwatch.db"),
        allowed_origins=("*",) if origins == "*" else tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=env_str("LOG_LEVEL", "INFO").upper(),
    )
