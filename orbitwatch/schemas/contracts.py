"""
contracts.py

Purpose:
  The four request/response contracts around the two AI calls, and a pure validator
  that checks any payload against one of them.

Contract:
  - `validate(schema, payload)` never raises for bad data. It returns a `ValidationResult`
    holding either the typed value or every violated field with the reason.
  - The same rigor applies to inbound requests and to the model's output.
  - Violations are reported with the wire (camelCase) dotted path, e.g. `breakdown.power`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from orbitwatch.models.domain import (
    AnomalyExplanationInput,
    AnomalyExplanationResult,
    RiskScoreInput,
    RiskScoreResult,
)

T = TypeVar("T", bound=BaseModel)


class SchemaName(str, Enum):
    RISK_SCORE_INPUT = "RiskScoreInput"
    RISK_SCORE_OUTPUT = "RiskScoreOutput"
    ANOMALY_EXPLANATION_INPUT = "AnomalyExplanationInput"
    ANOMALY_EXPLANATION_OUTPUT = "AnomalyExplanationOutput"


SCHEMAS: Dict[SchemaName, Type[BaseModel]] = {
    SchemaName.RISK_SCORE_INPUT: RiskScoreInput,
    SchemaName.RISK_SCORE_OUTPUT: RiskScoreResult,
    SchemaName.ANOMALY_EXPLANATION_INPUT: AnomalyExplanationInput,
    SchemaName.ANOMALY_EXPLANATION_OUTPUT: AnomalyExplanationResult,
}


class ViolationKind(str, Enum):
    MISSING = "missing"
    WRONG_TYPE = "wrong_type"
    OUT_OF_RANGE = "out_of_range"
    INVALID_ENUM = "invalid_enum"
    EMPTY = "empty"
    INVALID = "invalid"


# pydantic-core error type -> violation kind
_KIND_BY_ERROR_TYPE: Dict[str, ViolationKind] = {
    "missing": ViolationKind.MISSING,
    "greater_than": ViolationKind.OUT_OF_RANGE,
    "greater_than_equal": ViolationKind.OUT_OF_RANGE,
    "less_than": ViolationKind.OUT_OF_RANGE,
    "less_than_equal": ViolationKind.OUT_OF_RANGE,
    "finite_number": ViolationKind.OUT_OF_RANGE,
    "literal_error": ViolationKind.INVALID_ENUM,
    "enum": ViolationKind.INVALID_ENUM,
    "string_too_short": ViolationKind.EMPTY,
}


@dataclass(frozen=True)
class FieldViolation:
    field: str
    kind: ViolationKind
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.kind.value} ({self.message})"


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    violations: Tuple[FieldViolation, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.violations

    def summary(self) -> str:
        return "; ".join(str(v) for v in self.violations)


def _kind_for(error_type: str) -> ViolationKind:
    kind = _KIND_BY_ERROR_TYPE.get(error_type)
    if kind is not None:
        return kind
    if error_type.endswith("_type") or error_type.endswith("_parsing") or error_type == "is_instance_of":
        return ViolationKind.WRONG_TYPE
    return ViolationKind.INVALID


def _field_path(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def violations_from(exc: PydanticValidationError) -> Tuple[FieldViolation, ...]:
    out: List[FieldViolation] = []
    for err in exc.errors(include_url=False):
        out.append(
            FieldViolation(
                field=_field_path(tuple(err.get("loc") or ())),
                kind=_kind_for(str(err.get("type") or "")),
                message=str(err.get("msg") or ""),
            )
        )
    return tuple(out)


def resolve_schema(schema: "SchemaName | str | Type[BaseModel]") -> Type[BaseModel]:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema
    return SCHEMAS[SchemaName(schema)]


def validate(schema: "SchemaName | str | Type[T]", payload: Any) -> ValidationResult:
    model = resolve_schema(schema)

    if isinstance(payload, model):
        # typed values are re-checked too (model_construct skips constraints)
        payload = payload.model_dump(by_alias=True)

    if not isinstance(payload, dict):
        return ValidationResult(
            violations=(
                FieldViolation(
                    field="<root>",
                    kind=ViolationKind.WRONG_TYPE,
                    message=f"expected a JSON object, got {type(payload).__name__}",
                ),
            )
        )

    try:
        value = model.model_validate(payload)
    except PydanticValidationError as exc:
        return ValidationResult(violations=violations_from(exc))
    return ValidationResult(value=value)
