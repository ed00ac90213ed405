"""Domain models and pure engines for the party fund.

This package holds the denomination vector math, the append-only ledger and
the loot split engines. Everything here is free of I/O so that persistence
and presentation can evolve without touching the allocation rules.
"""

__all__ = [
    "denominations",
    "fair_split",
    "ledger",
    "loot_split",
    "money",
    "pre_allocation",
    "result",
]
