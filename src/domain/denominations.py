from __future__ import annotations

from enum import StrEnum
from typing import Final


class Denomination(StrEnum):
    PP = "pp"
    GP = "gp"
    EP = "ep"
    SP = "sp"
    CP = "cp"


# Fixed iteration order, highest value first. Every order-dependent algorithm walks this tuple.
DENOMINATIONS_DESC: Final[tuple[Denomination, ...]] = (
    Denomination.PP,
    Denomination.GP,
    Denomination.EP,
    Denomination.SP,
    Denomination.CP,
)

# Value of one coin in copper pieces. Informational totals and percent targets only, never conversion.
COIN_VALUE: Final[dict[Denomination, int]] = {
    Denomination.PP: 1000,
    Denomination.GP: 100,
    Denomination.EP: 50,
    Denomination.SP: 10,
    Denomination.CP: 1,
}

# Largest count that survives a round trip through JSON consumers using IEEE doubles.
MAX_SAFE_COUNT: Final[int] = 2**53 - 1
