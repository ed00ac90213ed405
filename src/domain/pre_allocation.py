"""Party-fund pre-allocation ("skim") taken from a loot pile before it is split.

Modes:

- none: nothing is skimmed, the whole pile goes on to the split.
- fixed: an exact vector is skimmed; it may not exceed the loot in any denomination.
- percent: whole coins are picked greedily, highest value first, without
  ever exceeding ``floor(total_value(loot) * percent)``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from enum import StrEnum
from fractions import Fraction
from numbers import Real

from pydantic import BaseModel, ConfigDict

from .denominations import COIN_VALUE, DENOMINATIONS_DESC
from .money import DenomVector, subtract_vectors, total_value, validate_vector, zero_vector
from .result import Err, ErrorCode, Ok, Result, err


class PreAllocationMode(StrEnum):
    NONE = "none"
    FIXED = "fixed"
    PERCENT = "percent"


class PreAllocationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    skim: DenomVector
    remainder: DenomVector
    target_value: int | None = None
    selected_value: int | None = None


def parse_mode(mode: object) -> Result[PreAllocationMode]:
    if isinstance(mode, PreAllocationMode):
        return Ok(mode)
    if isinstance(mode, str):
        try:
            return Ok(PreAllocationMode(mode.strip().lower()))
        except ValueError:
            pass
    return err(ErrorCode.INVALID_PREALLOCATION_MODE, mode=str(mode))


def compute_pre_allocation(
    loot: DenomVector | Mapping[str, object],
    mode: PreAllocationMode | str,
    *,
    fixed: DenomVector | Mapping[str, object] | None = None,
    percent: object = None,
) -> Result[PreAllocationResult]:
    checked_loot = validate_vector(loot)
    if isinstance(checked_loot, Err):
        return checked_loot

    parsed_mode = parse_mode(mode)
    if isinstance(parsed_mode, Err):
        return parsed_mode

    if parsed_mode.value == PreAllocationMode.NONE:
        return Ok(PreAllocationResult(skim=zero_vector(), remainder=checked_loot.value))
    if parsed_mode.value == PreAllocationMode.FIXED:
        return _fixed_skim(checked_loot.value, fixed)
    return _percent_skim(checked_loot.value, percent)


def _fixed_skim(loot: DenomVector, fixed: DenomVector | Mapping[str, object] | None) -> Result[PreAllocationResult]:
    if fixed is None:
        return err(ErrorCode.MISSING_REQUIRED_FIELD, field="fixed")
    checked = validate_vector(fixed)
    if isinstance(checked, Err):
        return checked
    skim = checked.value

    for denom in DENOMINATIONS_DESC:
        if skim.count(denom) > loot.count(denom):
            return err(
                ErrorCode.FIXED_PREALLOCATION_EXCEEDS_LOOT,
                denom=denom,
                requested=skim.count(denom),
                available=loot.count(denom),
            )

    remainder = subtract_vectors(loot, skim)
    if isinstance(remainder, Err):
        return remainder
    return Ok(PreAllocationResult(skim=skim, remainder=remainder.value))


def _is_valid_percent(percent: object) -> bool:
    if isinstance(percent, bool) or not isinstance(percent, (Real, Decimal)):
        return False
    return math.isfinite(percent) and 0 <= percent <= 1


def _percent_skim(loot: DenomVector, percent: object) -> Result[PreAllocationResult]:
    if percent is None:
        return err(ErrorCode.MISSING_REQUIRED_FIELD, field="percent")
    if not _is_valid_percent(percent):
        return err(ErrorCode.INVALID_PERCENT, percent=str(percent))

    loot_value = total_value(loot)
    if loot_value == 0:
        return err(ErrorCode.DEGENERATE_LOOT_TOTAL, loot_value=loot_value)

    # Exact rational product; a float product rounds once the total passes 2**53.
    target_value = math.floor(Fraction(loot_value) * Fraction(percent))  # type: ignore[arg-type]

    # Single high-to-low sweep: each denomination contributes as many whole
    # coins as still fit under the target, then the next lower one is tried.
    counts: dict[str, int] = {}
    selected_value = 0
    for denom in DENOMINATIONS_DESC:
        unit_value = COIN_VALUE[denom]
        fits = (target_value - selected_value) // unit_value
        take = min(loot.count(denom), max(fits, 0))
        counts[denom.value] = take
        selected_value += take * unit_value

    skim = DenomVector(**counts)
    remainder = subtract_vectors(loot, skim)
    if isinstance(remainder, Err):
        return remainder
    return Ok(
        PreAllocationResult(
            skim=skim,
            remainder=remainder.value,
            target_value=target_value,
            selected_value=selected_value,
        )
    )


__all__ = ["PreAllocationMode", "PreAllocationResult", "compute_pre_allocation", "parse_mode"]
