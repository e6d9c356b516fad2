"""
llm_client.py

Purpose:
  Structured-completion clients: send a prompt, ask for JSON matching a pydantic contract,
  return the decoded (still untrusted) JSON.

Features:
  - Gemini via the google-genai SDK (JSON mime type + response schema)
  - OpenRouter chat completions via httpx (JSON response format)
  - Failures are tagged with an `AIErrorKind` where they are observed:
    SDK error code / HTTP status / transport exception class.

The returned payload is NOT validated here; services run it through the contract validator.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Iterable, Optional, Protocol, Type

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel

from orbitwatch.errors import AIErrorKind, AIInvocationError, AIResponseError

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-1.5-pro"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-3.5-turbo"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class CompletionClient(Protocol):
    provider: str

    async def complete_structured(self, prompt: str, output_schema: Type[BaseModel]) -> Any: ...


def parse_json_reply(text: Optional[str], provider: str) -> Any:
    """Decode a model reply, tolerating prose or markdown fences around one JSON object."""
    body = (text or "").strip()
    if not body:
        raise AIResponseError(f"{provider} returned an empty response.")
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        pass

    match = _JSON_OBJECT.search(body)
    if match is None:
        raise AIResponseError(f"{provider} response contained no JSON object.", raw=body)
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise AIResponseError(f"{provider} response was not valid JSON: {exc.msg}", raw=body) from exc


def kind_for_status(status_code: Optional[int]) -> AIErrorKind:
    if status_code in (401, 403):
        return AIErrorKind.INVALID_CREDENTIAL
    if status_code == 429:
        return AIErrorKind.RATE_LIMITED
    return AIErrorKind.PROVIDER


# ============================================================
# GEMINI
# ============================================================

def _error_reasons(details: Any) -> Iterable[str]:
    """Yield google.rpc ErrorInfo reasons from an APIError payload."""
    if not isinstance(details, dict):
        return
    inner = details.get("error", details)
    if not isinstance(inner, dict):
        return
    for item in inner.get("details") or []:
        if isinstance(item, dict) and item.get("reason"):
            yield str(item["reason"])


def classify_gemini_error(exc: genai_errors.APIError) -> AIErrorKind:
    # Gemini answers a bad key with 400 INVALID_ARGUMENT + reason API_KEY_INVALID.
    if "API_KEY_INVALID" in set(_error_reasons(getattr(exc, "details", None))):
        return AIErrorKind.INVALID_CREDENTIAL
    return kind_for_status(getattr(exc, "code", None))


class GeminiCompletionClient:
    provider = "gemini"

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_GEMINI_MODEL, client: Any = None):
        self.model = model
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise AIInvocationError(
                    AIErrorKind.MISSING_CREDENTIAL,
                    "Gemini API key is not configured (set GEMINI_API_KEY).",
                    provider=self.provider,
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def complete_structured(self, prompt: str, output_schema: Type[BaseModel]) -> Any:
        client = self._get_client()
        config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=output_schema,
        )
        logger.debug("Gemini request model=%s schema=%s prompt_chars=%d", self.model, output_schema.__name__, len(prompt))
        try:
            resp = await asyncio.to_thread(
                client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            kind = classify_gemini_error(exc)
            logger.warning("Gemini call failed kind=%s code=%s", kind.value, getattr(exc, "code", None))
            raise AIInvocationError(
                kind,
                f"Gemini request failed ({getattr(exc, 'code', '?')}): {getattr(exc, 'message', None) or exc}",
                provider=self.provider,
                status_code=getattr(exc, "code", None),
            ) from exc
        except (httpx.TransportError, ConnectionError, TimeoutError) as exc:
            logger.warning("Gemini call failed kind=network: %s", exc)
            raise AIInvocationError(
                AIErrorKind.NETWORK,
                f"Cannot reach Gemini: {exc}",
                provider=self.provider,
            ) from exc

        return parse_json_reply(getattr(resp, "text", None), self.provider)


# ============================================================
# OPENROUTER
# ============================================================

class OpenRouterCompletionClient:
    provider = "openrouter"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_OPENROUTER_MODEL,
        base_url: str = DEFAULT_OPENROUTER_BASE_URL,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._api_key = api_key
        self._transport = transport

    def _schema_hint(self, output_schema: Type[BaseModel]) -> str:
        schema = output_schema.model_json_schema(by_alias=True)
        return "Respond with a single JSON object matching this JSON schema:\n" + json.dumps(schema)

    async def complete_structured(self, prompt: str, output_schema: Type[BaseModel]) -> Any:
        if not self._api_key:
            raise AIInvocationError(
                AIErrorKind.MISSING_CREDENTIAL,
                "OpenRouter API key is not configured (set OPENROUTER_API_KEY).",
                provider=self.provider,
            )

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self._schema_hint(output_schema)},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            kind = kind_for_status(status)
            logger.error("OpenRouter API error: %s %s", status, exc.response.text[:200])
            raise AIInvocationError(
                kind,
                f"OpenRouter returned {status}",
                provider=self.provider,
                status_code=status,
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("OpenRouter call failed kind=network: %s", exc)
            raise AIInvocationError(
                AIErrorKind.NETWORK,
                f"Cannot reach OpenRouter: {exc}",
                provider=self.provider,
            ) from exc

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AIResponseError("OpenRouter returned a malformed completion envelope.", raw=resp.text) from exc

        return parse_json_reply(content, self.provider)


def build_completion_client(
    provider: str,
    *,
    gemini_api_key: Optional[str] = None,
    gemini_model: str = DEFAULT_GEMINI_MODEL,
    openrouter_api_key: Optional[str] = None,
    openrouter_model: str = DEFAULT_OPENROUTER_MODEL,
    openrouter_base_url: str = DEFAULT_OPENROUTER_BASE_URL,
    timeout_s: float = 30.0,
) -> CompletionClient:
    if provider == "openrouter":
        if not openrouter_api_key:
            logger.warning("OPENROUTER_API_KEY is not set; AI features will fail until it is configured.")
        return OpenRouterCompletionClient(
            openrouter_api_key,
            model=openrouter_model,
            base_url=openrouter_base_url,
            timeout_s=timeout_s,
        )
    if provider != "gemini":
        raise ValueError(f"Unknown LLM_PROVIDER: {provider!r} (expected 'gemini' or 'openrouter')")
    if not gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; AI features will fail until it is configured.")
    return GeminiCompletionClient(gemini_api_key, model=gemini_model)
