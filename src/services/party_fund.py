from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from domain.fair_split import FAIRNESS_TOLERANCE
from domain.ledger import (
    LedgerDocument,
    Transaction,
    TransactionType,
    append_transaction,
    compute_balance,
    create_ledger_document,
    ledger_to_dict,
    validate_imported_document,
    with_last_modified_at,
)
from domain.loot_split import LootSplitInput, LootSplitResult, build_commit_transaction, compute_loot_split
from domain.money import DenomVector, validate_vector
from domain.result import DomainError, Err, Ok, Result

from .ledger_io import read_ledger_file, write_ledger_file

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    def save(self, document: LedgerDocument) -> None: ...

    def load(self) -> LedgerDocument | None: ...


class StoredLedgerError(Exception):
    def __init__(self, error: DomainError) -> None:
        self.error = error
        super().__init__(f"Stored ledger failed validation: {error.code} {error.details}")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class PartyFundService:
    """Owns the active ledger document for a single local session.

    Every successful operation swaps in a new document and persists it;
    failed operations leave both the active document and the store untouched.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        tolerance: int = FAIRNESS_TOLERANCE,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.store = store
        self.tolerance = tolerance
        self._clock = clock
        self._id_factory = id_factory
        self._ledger = self._load_or_create()

    @property
    def ledger(self) -> LedgerDocument:
        return self._ledger

    def balance(self) -> DenomVector:
        return compute_balance(self._ledger.transactions)

    def deposit(
        self, amounts: DenomVector | Mapping[str, object], *, note: str | None = None
    ) -> Result[Transaction]:
        return self.record(TransactionType.DEPOSIT, amounts, note=note)

    def withdraw(
        self, amounts: DenomVector | Mapping[str, object], *, note: str | None = None
    ) -> Result[Transaction]:
        return self.record(TransactionType.WITHDRAW, amounts, note=note)

    def record(
        self,
        kind: TransactionType,
        amounts: DenomVector | Mapping[str, object],
        *,
        note: str | None = None,
        metadata: Any = None,
    ) -> Result[Transaction]:
        checked = validate_vector(amounts)
        if isinstance(checked, Err):
            logger.info("Rejected %s: %s", kind.value, checked.code)
            return checked

        tx = Transaction(
            id=self._id_factory(),
            timestamp=self._clock(),
            kind=kind,
            amounts=checked.value,
            note=note,
            metadata=metadata,
        )
        return self._append(tx)

    def split(self, split_input: LootSplitInput) -> Result[LootSplitResult]:
        result = compute_loot_split(split_input, tolerance=self.tolerance)
        if isinstance(result, Err):
            logger.info("Loot split rejected: %s", result.code)
        return result

    def commit_split(self, split: LootSplitResult, *, note: str | None = None) -> Result[Transaction]:
        built = build_commit_transaction(
            split.fund_skim,
            split.fund_split_remainder,
            timestamp=self._clock(),
            id=self._id_factory(),
            note=note,
            metadata={
                "source": "loot_split",
                "party_size": len(split.recipients),
                "recipient_totals": list(split.recipient_totals),
            },
        )
        if isinstance(built, Err):
            logger.info("Split commit rejected: %s", built.code)
            return built
        return self._append(built.value)

    def import_file(self, path: Path) -> Result[LedgerDocument]:
        """Replace the active document with the one in ``path``. Never merges."""
        imported = read_ledger_file(path)
        if isinstance(imported, Err):
            logger.warning("Import of %s rejected: %s %s", path, imported.code, imported.error.details)
            return imported

        ledger = with_last_modified_at(imported.value, self._clock())
        self._replace(ledger)
        logger.info("Imported %d transactions from %s", len(ledger.transactions), path)
        return Ok(ledger)

    def export_file(self, path: Path) -> Result[Path]:
        written = write_ledger_file(path, self._ledger)
        if isinstance(written, Ok):
            logger.info("Exported %d transactions to %s", len(self._ledger.transactions), path)
        return written

    def _append(self, tx: Transaction) -> Result[Transaction]:
        appended = append_transaction(self._ledger, tx)
        if isinstance(appended, Err):
            logger.info("Rejected %s %s: %s", tx.kind.value, tx.id, appended.code)
            return appended

        self._replace(appended.value)
        logger.info("Appended %s %s", tx.kind.value, tx.id)
        return Ok(appended.value.transactions[-1])

    def _replace(self, ledger: LedgerDocument) -> None:
        self.store.save(ledger)
        self._ledger = ledger

    def _load_or_create(self) -> LedgerDocument:
        stored = self.store.load()
        if stored is None:
            ledger = create_ledger_document(self._clock())
            self.store.save(ledger)
            logger.info("Created empty ledger document")
            return ledger

        validated = validate_imported_document(ledger_to_dict(stored))
        if isinstance(validated, Err):
            raise StoredLedgerError(validated.error)
        return validated.value


__all__ = ["LedgerStore", "PartyFundService", "StoredLedgerError"]
