"""Explicit success/failure values for domain operations.

Domain functions never raise for expected validation failures. They return
either ``Ok(value)`` or ``Err(DomainError)`` so the caller can inspect the
failure without unwinding.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ErrorCode(StrEnum):
    INVALID_PARTY_SIZE = "INVALID_PARTY_SIZE"
    INVALID_AMOUNT_NEGATIVE = "INVALID_AMOUNT_NEGATIVE"
    INVALID_AMOUNT_NON_INTEGER = "INVALID_AMOUNT_NON_INTEGER"
    INVALID_AMOUNT_NOT_FINITE = "INVALID_AMOUNT_NOT_FINITE"
    ZERO_AMOUNT_TRANSACTION = "ZERO_AMOUNT_TRANSACTION"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    FIXED_PREALLOCATION_EXCEEDS_LOOT = "FIXED_PREALLOCATION_EXCEEDS_LOOT"
    INVALID_PERCENT = "INVALID_PERCENT"
    DEGENERATE_LOOT_TOTAL = "DEGENERATE_LOOT_TOTAL"
    IMPORT_PARSE_ERROR = "IMPORT_PARSE_ERROR"
    IMPORT_INVALID_SCHEMA = "IMPORT_INVALID_SCHEMA"
    IMPORT_UNSUPPORTED_SCHEMA_VERSION = "IMPORT_UNSUPPORTED_SCHEMA_VERSION"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_PREALLOCATION_MODE = "INVALID_PREALLOCATION_MODE"
    EXPORT_WRITE_ERROR = "EXPORT_WRITE_ERROR"


class DomainError(BaseModel):
    """Typed failure with structured, JSON-friendly context."""

    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    details: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    error: DomainError

    @property
    def ok(self) -> bool:
        return False

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    def with_details(self, **extra: Any) -> Err:
        return Err(DomainError(code=self.error.code, details={**self.error.details, **extra}))


Result = Union[Ok[T], Err]


def err(code: ErrorCode, **details: Any) -> Err:
    return Err(DomainError(code=code, details=details))


__all__ = ["DomainError", "Err", "ErrorCode", "Ok", "Result", "err"]
