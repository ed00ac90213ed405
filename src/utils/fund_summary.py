from __future__ import annotations

from collections.abc import Sequence

from domain.denominations import DENOMINATIONS_DESC
from domain.ledger import Transaction, TransactionType, replay_order
from domain.loot_split import LootSplitResult
from domain.money import DenomVector, total_value

from .formatting import format_denoms_inline, format_timestamp, format_value


def _render_table(headers: Sequence[str], rows: Sequence[Sequence[str]], *, align_right_from: int = 1) -> str:
    widths = [max(len(headers[i]), max((len(row[i]) for row in rows), default=0)) for i in range(len(headers))]

    def _line(cells: Sequence[str]) -> str:
        parts = [
            f"{cell:<{widths[i]}}" if i < align_right_from else f"{cell:>{widths[i]}}" for i, cell in enumerate(cells)
        ]
        return " ".join(parts).rstrip()

    header = _line(headers)
    lines = [header, "-" * len(header)]
    lines.extend(_line(row) for row in rows)
    lines.append("-" * len(header))
    return "\n".join(lines)


def render_balance(balance: DenomVector) -> str:
    rows = [(denom.value, str(balance.count(denom))) for denom in DENOMINATIONS_DESC]
    table = _render_table(("Denom", "Count"), rows)
    return f"Party fund balance:\n{table}\nTotal value: {format_value(balance)}"


def render_history(transactions: Sequence[Transaction]) -> str:
    if not transactions:
        return "Ledger history:\n  (empty)"

    rows = []
    for tx in replay_order(transactions):
        sign = "+" if tx.kind == TransactionType.DEPOSIT else "-"
        rows.append(
            (
                format_timestamp(tx.timestamp),
                tx.kind.value,
                f"{sign}{format_denoms_inline(tx.amounts)}",
                str(total_value(tx.amounts)),
                tx.note or "",
            )
        )
    headers = ("Timestamp", "Kind", "Amounts", "Value cp", "Note")
    table = _render_table(headers, rows, align_right_from=2)
    return f"Ledger history:\n{table}"


def render_split(result: LootSplitResult) -> str:
    rows = [
        (f"Member {index + 1}", format_denoms_inline(vector), str(result.recipient_totals[index]))
        for index, vector in enumerate(result.recipients)
    ]
    lines = ["Loot split:", _render_table(("Recipient", "Coins", "Value cp"), rows)]

    if result.percent_target_value is not None:
        lines.append(f"Set-aside target: {result.percent_target_value} cp, selected: {result.percent_selected_value} cp")
    lines.append(f"Fund set-aside:  {format_denoms_inline(result.fund_skim)}")
    lines.append(f"Fund remainder:  {format_denoms_inline(result.fund_split_remainder)}")
    lines.append(f"Fund total:      {format_denoms_inline(result.fund_total)} ({format_value(result.fund_total)})")

    summary = result.summary
    lines.append(
        f"Recipient value avg={summary.average} min={summary.minimum} max={summary.maximum} spread={summary.spread}"
    )
    return "\n".join(lines)
