"""Denomination vector arithmetic and validation.

Counts are discrete and never converted between denominations: addition and
subtraction work strictly per denomination, and a subtraction that would
need to borrow from another denomination is an error.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from numbers import Real

from pydantic import BaseModel, ConfigDict

from .denominations import COIN_VALUE, DENOMINATIONS_DESC, MAX_SAFE_COUNT, Denomination
from .result import Err, ErrorCode, Ok, Result, err


class DenomVector(BaseModel):
    """Coin counts for all five denominations."""

    model_config = ConfigDict(frozen=True)

    pp: int = 0
    gp: int = 0
    ep: int = 0
    sp: int = 0
    cp: int = 0

    def count(self, denom: Denomination) -> int:
        return getattr(self, denom.value)

    def as_dict(self) -> dict[str, int]:
        return {denom.value: self.count(denom) for denom in DENOMINATIONS_DESC}


def zero_vector() -> DenomVector:
    return DenomVector()


def vector_from_counts(counts: Mapping[Denomination, int]) -> DenomVector:
    return DenomVector(**{Denomination(denom).value: count for denom, count in counts.items()})


def single_denomination(denom: Denomination, count: int) -> DenomVector:
    return DenomVector(**{denom.value: count})


def is_all_zero(vector: DenomVector) -> bool:
    return all(vector.count(denom) == 0 for denom in DENOMINATIONS_DESC)


def add_vectors(a: DenomVector, b: DenomVector) -> DenomVector:
    return DenomVector(**{denom.value: a.count(denom) + b.count(denom) for denom in DENOMINATIONS_DESC})


def subtract_vectors(a: DenomVector, b: DenomVector) -> Result[DenomVector]:
    """Per-denomination ``a - b``.

    Fails with INSUFFICIENT_FUNDS naming the first denomination (highest value
    first) that would go negative.
    """
    counts: dict[str, int] = {}
    for denom in DENOMINATIONS_DESC:
        difference = a.count(denom) - b.count(denom)
        if difference < 0:
            return err(
                ErrorCode.INSUFFICIENT_FUNDS,
                denom=denom,
                requested=b.count(denom),
                available=a.count(denom),
            )
        counts[denom.value] = difference
    return Ok(DenomVector(**counts))


def total_value(vector: DenomVector) -> int:
    return sum(vector.count(denom) * COIN_VALUE[denom] for denom in DENOMINATIONS_DESC)


def validate_count(value: object, *, denom: Denomination) -> Result[int]:
    # bool is an int subclass but never a coin count
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return err(ErrorCode.INVALID_AMOUNT_NON_INTEGER, denom=denom)
    if not math.isfinite(value):
        return err(ErrorCode.INVALID_AMOUNT_NOT_FINITE, denom=denom)
    if value != math.floor(value):
        return err(ErrorCode.INVALID_AMOUNT_NON_INTEGER, denom=denom)
    if value < 0:
        return err(ErrorCode.INVALID_AMOUNT_NEGATIVE, denom=denom)
    if value > MAX_SAFE_COUNT:
        return err(ErrorCode.INVALID_AMOUNT_NON_INTEGER, denom=denom)
    return Ok(int(value))


def validate_vector(value: DenomVector | Mapping[str, object]) -> Result[DenomVector]:
    """Check every count in descending denomination order and report the first violation.

    Accepts a ``DenomVector`` or a raw mapping keyed by denomination tag, such
    as parsed JSON or CLI input. Raw mappings must carry all five keys.
    """
    counts: dict[str, int] = {}
    for denom in DENOMINATIONS_DESC:
        if isinstance(value, DenomVector):
            raw = value.count(denom)
        elif denom.value in value:
            raw = value[denom.value]
        else:
            return err(ErrorCode.MISSING_REQUIRED_FIELD, field=denom.value, denom=denom)

        checked = validate_count(raw, denom=denom)
        if isinstance(checked, Err):
            return checked
        counts[denom.value] = checked.value
    return Ok(DenomVector(**counts))


__all__ = [
    "DenomVector",
    "add_vectors",
    "is_all_zero",
    "single_denomination",
    "subtract_vectors",
    "total_value",
    "validate_count",
    "validate_vector",
    "vector_from_counts",
    "zero_vector",
]
