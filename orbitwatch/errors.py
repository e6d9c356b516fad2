"""
errors.py

Failure taxonomy for the telemetry risk pipeline.

Every failure is scoped to one request. Errors carry structured context (satellite ID,
offending fields, failure kind) set where they are raised; nothing downstream inspects
message text. Only `orbitwatch.api.error_handlers` turns them into HTTP responses.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from orbitwatch.schemas.contracts import FieldViolation


class OrbitWatchError(Exception):
    """Base class for pipeline failures."""


class ValidationError(OrbitWatchError):
    """Request payload failed its contract. Client-fixable, never retried."""

    def __init__(self, violations: Iterable[FieldViolation], context: str = "request"):
        self.violations: Tuple[FieldViolation, ...] = tuple(violations)
        self.context = context
        detail = "; ".join(str(v) for v in self.violations) or "invalid payload"
        super().__init__(f"Invalid {context}: {detail}")

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)


class NotFoundError(OrbitWatchError):
    def __init__(self, satellite_id: str):
        self.satellite_id = satellite_id
        super().__init__(f"No telemetry data found for satellite ID: {satellite_id}")


class AIErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    PROVIDER = "provider"


class AIInvocationError(OrbitWatchError):
    """The completion call itself failed (credential, quota, transport, provider)."""

    def __init__(
        self,
        kind: AIErrorKind,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)

    @property
    def terminal(self) -> bool:
        return self.kind in (
            AIErrorKind.MISSING_CREDENTIAL,
            AIErrorKind.INVALID_CREDENTIAL,
            AIErrorKind.RATE_LIMITED,
        )


class AIResponseError(OrbitWatchError):
    """The model replied, but the reply is not a valid instance of the expected contract."""

    def __init__(
        self,
        message: str,
        violations: Sequence[FieldViolation] = (),
        raw: Optional[str] = None,
    ):
        self.violations: Tuple[FieldViolation, ...] = tuple(violations)
        self.raw = raw[:500] if raw else raw
        super().__init__(message)
