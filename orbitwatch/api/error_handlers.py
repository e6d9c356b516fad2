"""
error_handlers.py

The only place a pipeline failure becomes an HTTP status + `{"error": "..."}` body.

  ValidationError                      -> 400
  NotFoundError                        -> 404
  AIInvocationError (missing/invalid credential) -> 401
  everything else (rate limit, network, provider, AIResponseError, unexpected) -> 500
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orbitwatch.errors import (
    AIErrorKind,
    AIInvocationError,
    AIResponseError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_AI_MESSAGES = {
    AIErrorKind.MISSING_CREDENTIAL: "AI service configuration error: API key is not set. Admin check server setup.",
    AIErrorKind.INVALID_CREDENTIAL: "AI service provider error: invalid API key. Admin check configuration.",
    AIErrorKind.RATE_LIMITED: "AI service provider error: rate limit exceeded. Please try again later.",
    AIErrorKind.NETWORK: "AI service communication error: cannot connect to AI provider.",
    AIErrorKind.PROVIDER: "AI service provider error: the AI provider returned an error. Please try again later.",
}


def status_for(exc: Exception) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, AIInvocationError) and exc.kind in (
        AIErrorKind.MISSING_CREDENTIAL,
        AIErrorKind.INVALID_CREDENTIAL,
    ):
        return 401
    return 500


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


async def _validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return _error(status_for(exc), str(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc or '<root>'}: {err.get('msg')}")
    return _error(400, "Invalid request: " + "; ".join(parts))


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(status_for(exc), str(exc))


async def _ai_invocation_handler(request: Request, exc: AIInvocationError) -> JSONResponse:
    logger.error("%s %s AI call failed provider=%s kind=%s: %s",
                 request.method, request.url.path, exc.provider, exc.kind.value, exc)
    return _error(status_for(exc), _AI_MESSAGES.get(exc.kind, str(exc)))


async def _ai_response_handler(request: Request, exc: AIResponseError) -> JSONResponse:
    logger.error("%s %s AI reply rejected: %s", request.method, request.url.path, exc)
    return _error(status_for(exc), f"AI service error: response data failed validation. {exc}")


async def _unexpected_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s unexpected error", request.method, request.url.path)
    return _error(500, "An internal server error occurred. Please check server logs for details.")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(AIInvocationError, _ai_invocation_handler)
    app.add_exception_handler(AIResponseError, _ai_response_handler)
    app.add_exception_handler(Exception, _unexpected_handler)
