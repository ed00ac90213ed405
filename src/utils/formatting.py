from __future__ import annotations

from datetime import datetime

from domain.denominations import DENOMINATIONS_DESC
from domain.money import DenomVector, is_all_zero, total_value


def format_denoms_inline(vector: DenomVector) -> str:
    """Compact form such as ``2gp 5sp 1cp``; ``0`` for an empty vector."""
    if is_all_zero(vector):
        return "0"
    return " ".join(f"{vector.count(denom)}{denom.value}" for denom in DENOMINATIONS_DESC if vector.count(denom))


def format_value(vector: DenomVector) -> str:
    return f"{total_value(vector)} cp"


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")
