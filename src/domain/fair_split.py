from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from pydantic import BaseModel, ConfigDict

from .denominations import COIN_VALUE, DENOMINATIONS_DESC, Denomination
from .money import DenomVector, validate_vector
from .result import Err, ErrorCode, Ok, Result, err

# Largest increase in recipient spread (max - min total, in cp) a single coin may cause.
FAIRNESS_TOLERANCE: Final[int] = 10


@dataclass(frozen=True)
class _Coin:
    denom: Denomination
    value: int
    rank: int


class SplitSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    average: int
    minimum: int
    maximum: int
    spread: int


class FairSplitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipients: tuple[DenomVector, ...]
    recipient_totals: tuple[int, ...]
    split_remainder: DenomVector
    summary: SplitSummary


def validate_party_size(party_size: object) -> Result[int]:
    if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size < 1:
        return err(ErrorCode.INVALID_PARTY_SIZE, party_size=str(party_size))
    return Ok(party_size)


def _expand_coins(vector: DenomVector) -> list[_Coin]:
    coins = [
        _Coin(denom=denom, value=COIN_VALUE[denom], rank=rank)
        for rank, denom in enumerate(DENOMINATIONS_DESC)
        for _ in range(vector.count(denom))
    ]
    coins.sort(key=lambda coin: (-coin.value, coin.rank))
    return coins


def _spread(totals: list[int]) -> int:
    return max(totals) - min(totals)


def compute_fair_split(
    remainder: DenomVector | Mapping[str, object],
    party_size: int,
    *,
    tolerance: int = FAIRNESS_TOLERANCE,
) -> Result[FairSplitResult]:
    """Hand out coins one by one, largest first, to the currently poorest recipient.

    A coin only goes to that recipient when doing so grows the spread of
    recipient totals by at most ``tolerance``; otherwise it is diverted to the
    fund's split-remainder. Ties for poorest go to the lowest index.
    """
    checked_size = validate_party_size(party_size)
    if isinstance(checked_size, Err):
        return checked_size
    checked_remainder = validate_vector(remainder)
    if isinstance(checked_remainder, Err):
        return checked_remainder
    size = checked_size.value

    buckets: list[dict[Denomination, int]] = [dict.fromkeys(DENOMINATIONS_DESC, 0) for _ in range(size)]
    totals = [0] * size
    diverted: dict[Denomination, int] = dict.fromkeys(DENOMINATIONS_DESC, 0)

    for coin in _expand_coins(checked_remainder.value):
        target = min(range(size), key=totals.__getitem__)
        current_spread = _spread(totals)

        simulated = list(totals)
        simulated[target] += coin.value
        if _spread(simulated) <= current_spread + tolerance:
            buckets[target][coin.denom] += 1
            totals[target] += coin.value
        else:
            diverted[coin.denom] += 1

    return Ok(
        FairSplitResult(
            recipients=tuple(_to_vector(bucket) for bucket in buckets),
            recipient_totals=tuple(totals),
            split_remainder=_to_vector(diverted),
            summary=SplitSummary(
                average=sum(totals) // size,
                minimum=min(totals),
                maximum=max(totals),
                spread=_spread(totals),
            ),
        )
    )


def _to_vector(counts: dict[Denomination, int]) -> DenomVector:
    return DenomVector(**{denom.value: count for denom, count in counts.items()})


__all__ = ["FAIRNESS_TOLERANCE", "FairSplitResult", "SplitSummary", "compute_fair_split", "validate_party_size"]
