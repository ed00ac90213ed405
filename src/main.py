from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from config import config
from db.db import init_db
from db.repositories import LedgerDocumentRepository
from domain.denominations import DENOMINATIONS_DESC
from domain.loot_split import LootSplitInput
from domain.result import Err
from services.party_fund import PartyFundService
from utils.formatting import format_denoms_inline
from utils.fund_summary import render_balance, render_history, render_split
from utils.messages import describe_error


def build_service(db_path: Path, *, tolerance: int) -> PartyFundService:
    session = init_db(db_path)
    return PartyFundService(LedgerDocumentRepository(session), tolerance=tolerance)


def _amounts(args: argparse.Namespace, prefix: str = "") -> dict[str, object]:
    return {denom.value: getattr(args, f"{prefix}{denom.value}") for denom in DENOMINATIONS_DESC}


def _fixed_amounts(args: argparse.Namespace) -> dict[str, object] | None:
    given = _amounts(args, prefix="fixed_")
    if all(count is None for count in given.values()):
        return None
    return {denom: 0 if count is None else count for denom, count in given.items()}


def _report_failure(failure: Err) -> int:
    print(f"Error: {describe_error(failure.error)}")
    return 1


def run_deposit(service: PartyFundService, args: argparse.Namespace) -> int:
    result = service.deposit(_amounts(args), note=args.note)
    if isinstance(result, Err):
        return _report_failure(result)
    print(f"Deposited {format_denoms_inline(result.value.amounts)}")
    return 0


def run_withdraw(service: PartyFundService, args: argparse.Namespace) -> int:
    result = service.withdraw(_amounts(args), note=args.note)
    if isinstance(result, Err):
        return _report_failure(result)
    print(f"Withdrew {format_denoms_inline(result.value.amounts)}")
    return 0


def run_split(service: PartyFundService, args: argparse.Namespace) -> int:
    split_input = LootSplitInput(
        loot=_amounts(args),
        party_size=args.party_size,
        mode=args.mode,
        fixed=_fixed_amounts(args),
        percent=None if args.percent is None else args.percent / 100,
    )
    result = service.split(split_input)
    if isinstance(result, Err):
        return _report_failure(result)
    print(render_split(result.value))

    if args.commit:
        committed = service.commit_split(result.value, note=args.note)
        if isinstance(committed, Err):
            return _report_failure(committed)
        print(f"Committed {format_denoms_inline(committed.value.amounts)} to the party fund")
    return 0


def run_import(service: PartyFundService, args: argparse.Namespace) -> int:
    result = service.import_file(args.path)
    if isinstance(result, Err):
        return _report_failure(result)
    print(f"Imported {len(result.value.transactions)} transactions from {args.path}")
    return 0


def run_export(service: PartyFundService, args: argparse.Namespace) -> int:
    result = service.export_file(args.path)
    if isinstance(result, Err):
        return _report_failure(result)
    print(f"Exported ledger to {result.value}")
    return 0


def _add_denomination_options(parser: argparse.ArgumentParser, *, prefix: str = "", default: int | None = 0) -> None:
    for denom in DENOMINATIONS_DESC:
        dest = f"{prefix.replace('-', '_')}{denom.value}"
        parser.add_argument(f"--{prefix}{denom.value}", type=int, default=default, dest=dest)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Track a party fund and split loot without making change.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite file holding the active ledger")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("balance", help="Show the current fund balance")
    commands.add_parser("history", help="List ledger transactions in replay order")

    for name in ("deposit", "withdraw"):
        command = commands.add_parser(name, help=f"Record a {name}")
        _add_denomination_options(command)
        command.add_argument("--note", default=None)

    split = commands.add_parser("split", help="Split a loot pile among the party")
    _add_denomination_options(split)
    split.add_argument("--party-size", type=int, required=True)
    split.add_argument("--mode", default="none", help="none, fixed or percent")
    split.add_argument("--percent", type=float, default=None, help="Set-aside percent for percent mode (0-100)")
    _add_denomination_options(split, prefix="fixed-", default=None)
    split.add_argument("--commit", action="store_true", help="Deposit set-aside and remainder into the fund")
    split.add_argument("--note", default="Loot split")

    for name in ("import", "export"):
        command = commands.add_parser(name, help=f"{name.capitalize()} the ledger as JSON")
        command.add_argument("path", type=Path)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    args = build_parser().parse_args(argv)

    service = build_service(args.db or settings.database_path, tolerance=settings.fairness_tolerance)

    if args.command == "balance":
        print(render_balance(service.balance()))
        return 0
    if args.command == "history":
        print(render_history(service.ledger.transactions))
        return 0

    handlers = {
        "deposit": run_deposit,
        "withdraw": run_withdraw,
        "split": run_split,
        "import": run_import,
        "export": run_export,
    }
    return handlers[args.command](service, args)


if __name__ == "__main__":
    raise SystemExit(main())
