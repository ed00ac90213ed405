"""End-to-end loot split and the single fund deposit it commits.

Conservation holds for every successful split::

    sum(recipients) + fund_skim + fund_split_remainder == loot

denomination by denomination.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from .fair_split import FAIRNESS_TOLERANCE, SplitSummary, compute_fair_split, validate_party_size
from .ledger import Transaction, TransactionType
from .money import DenomVector, add_vectors, is_all_zero, validate_vector
from .pre_allocation import PreAllocationMode, compute_pre_allocation
from .result import Err, ErrorCode, Ok, Result, err


@dataclass(frozen=True)
class LootSplitInput:
    loot: DenomVector | Mapping[str, object]
    party_size: int
    mode: PreAllocationMode | str = PreAllocationMode.NONE
    fixed: DenomVector | Mapping[str, object] | None = None
    percent: object = None


class LootSplitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipients: tuple[DenomVector, ...]
    recipient_totals: tuple[int, ...]
    fund_skim: DenomVector
    fund_split_remainder: DenomVector
    fund_total: DenomVector
    summary: SplitSummary
    percent_target_value: int | None = None
    percent_selected_value: int | None = None


def compute_loot_split(split_input: LootSplitInput, *, tolerance: int = FAIRNESS_TOLERANCE) -> Result[LootSplitResult]:
    party_size = validate_party_size(split_input.party_size)
    if isinstance(party_size, Err):
        return party_size

    pre_allocation = compute_pre_allocation(
        split_input.loot,
        split_input.mode,
        fixed=split_input.fixed,
        percent=split_input.percent,
    )
    if isinstance(pre_allocation, Err):
        return pre_allocation
    skimmed = pre_allocation.value

    split = compute_fair_split(skimmed.remainder, party_size.value, tolerance=tolerance)
    if isinstance(split, Err):
        return split

    return Ok(
        LootSplitResult(
            recipients=split.value.recipients,
            recipient_totals=split.value.recipient_totals,
            fund_skim=skimmed.skim,
            fund_split_remainder=split.value.split_remainder,
            fund_total=add_vectors(skimmed.skim, split.value.split_remainder),
            summary=split.value.summary,
            percent_target_value=skimmed.target_value,
            percent_selected_value=skimmed.selected_value,
        )
    )


def build_commit_transaction(
    skim: DenomVector,
    split_remainder: DenomVector,
    *,
    timestamp: datetime,
    id: str,
    note: str | None = None,
    metadata: Any = None,
) -> Result[Transaction]:
    """Combine everything a split routes to the fund into one deposit.

    Exactly one transaction per commit, never one per recipient and never
    separate skim and remainder entries.
    """
    for part in (skim, split_remainder):
        checked = validate_vector(part)
        if isinstance(checked, Err):
            return checked

    amounts = validate_vector(add_vectors(skim, split_remainder))
    if isinstance(amounts, Err):
        return amounts
    if is_all_zero(amounts.value):
        return err(ErrorCode.ZERO_AMOUNT_TRANSACTION)

    return Ok(
        Transaction(
            id=id,
            timestamp=timestamp,
            kind=TransactionType.DEPOSIT,
            amounts=amounts.value,
            note=note,
            metadata=metadata,
        )
    )


__all__ = ["LootSplitInput", "LootSplitResult", "build_commit_transaction", "compute_loot_split"]
