from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .denominations import Denomination
from .money import DenomVector, add_vectors, is_all_zero, subtract_vectors, validate_vector, zero_vector
from .result import Err, ErrorCode, Ok, Result, err

SCHEMA_VERSION: Final[int] = 3

_REQUIRED_TRANSACTION_FIELDS: Final[tuple[str, ...]] = ("id", "timestamp", "kind", "amounts")


class TransactionType(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Transaction(BaseModel):
    """A single append-only ledger entry.

    ``amounts`` is always non-negative; direction is implied by ``kind``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    kind: TransactionType
    amounts: DenomVector
    note: str | None = None
    metadata: Any = None

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)


class LedgerDocument(BaseModel):
    """Root persisted document. The balance is never stored, only replayed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_version: int = Field(default=SCHEMA_VERSION, alias="schemaVersion")
    created_at: datetime = Field(alias="createdAt")
    last_modified_at: datetime = Field(alias="lastModifiedAt")
    transactions: tuple[Transaction, ...] = ()

    @field_validator("created_at", "last_modified_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime) -> datetime:
        return _as_utc(value)


class LedgerReplayError(Exception):
    """Replay of an already-validated history overdrew a denomination.

    Append and import validation make this unreachable for well-formed
    documents, so it signals corrupted state rather than bad user input.
    """

    def __init__(
        self,
        *,
        transaction_id: str,
        denom: Denomination,
        attempted_quantity: int,
        available_balance: int,
    ) -> None:
        self.transaction_id = transaction_id
        self.denom = denom
        self.attempted_quantity = attempted_quantity
        self.available_balance = available_balance
        message = (
            f"Ledger replay overdraft at transaction={transaction_id} denom={denom} "
            f"attempted={attempted_quantity} available={available_balance}"
        )
        super().__init__(message)


def create_ledger_document(now: datetime) -> LedgerDocument:
    return LedgerDocument(created_at=now, last_modified_at=now)


def with_last_modified_at(ledger: LedgerDocument, now: datetime) -> LedgerDocument:
    return ledger.model_copy(update={"last_modified_at": _as_utc(now)})


def replay_order(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Timestamp ascending, id breaks ties."""
    return sorted(transactions, key=lambda tx: (tx.timestamp, tx.id))


def _replay(transactions: Iterable[Transaction]) -> Result[DenomVector]:
    balance = zero_vector()
    for tx in transactions:
        if tx.kind == TransactionType.DEPOSIT:
            balance = add_vectors(balance, tx.amounts)
            continue
        step = subtract_vectors(balance, tx.amounts)
        if isinstance(step, Err):
            return step.with_details(transaction_id=tx.id)
        balance = step.value
    return Ok(balance)


def compute_balance(transactions: Iterable[Transaction]) -> DenomVector:
    """Replay ``transactions`` in (timestamp, id) order and return the fund balance.

    Raises LedgerReplayError if a withdrawal overdraws the running balance.
    """
    replayed = _replay(replay_order(transactions))
    if isinstance(replayed, Err):
        details = replayed.error.details
        raise LedgerReplayError(
            transaction_id=details["transaction_id"],
            denom=details["denom"],
            attempted_quantity=details["requested"],
            available_balance=details["available"],
        )
    return replayed.value


def _validate_transaction(tx: Transaction) -> Result[Transaction]:
    amounts = validate_vector(tx.amounts)
    if isinstance(amounts, Err):
        return amounts
    if is_all_zero(amounts.value):
        return err(ErrorCode.ZERO_AMOUNT_TRANSACTION)
    return Ok(tx.model_copy(update={"amounts": amounts.value}))


def append_transaction(ledger: LedgerDocument, tx: Transaction) -> Result[LedgerDocument]:
    """Validate ``tx`` against the current replayed balance and append it.

    Withdrawals may not overdraw any denomination, neither at the current
    balance nor at any earlier point of the replay when ``tx`` is back-dated.
    """
    validated = _validate_transaction(tx)
    if isinstance(validated, Err):
        return validated
    tx = validated.value

    if tx.kind == TransactionType.WITHDRAW:
        balance = compute_balance(ledger.transactions)
        remaining = subtract_vectors(balance, tx.amounts)
        if isinstance(remaining, Err):
            return remaining

        replayed = _replay(replay_order([*ledger.transactions, tx]))
        if isinstance(replayed, Err):
            return replayed

    return Ok(
        ledger.model_copy(
            update={
                "transactions": (*ledger.transactions, tx),
                "last_modified_at": tx.timestamp,
            }
        )
    )


def _parse_instant(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return _as_utc(parsed)


def _parse_transaction(raw: object, index: int) -> Result[Transaction]:
    location = f"transactions[{index}]"
    if not isinstance(raw, Mapping):
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=location, index=index)

    for name in _REQUIRED_TRANSACTION_FIELDS:
        if name not in raw:
            return err(ErrorCode.MISSING_REQUIRED_FIELD, field=f"{location}.{name}", index=index)

    tx_id = raw["id"]
    if not isinstance(tx_id, str) or not tx_id:
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=f"{location}.id", index=index)

    timestamp = _parse_instant(raw["timestamp"])
    if timestamp is None:
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=f"{location}.timestamp", index=index)

    kind = raw["kind"]
    if not isinstance(kind, str) or kind not in {member.value for member in TransactionType}:
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=f"{location}.kind", index=index)

    amounts_raw = raw["amounts"]
    if not isinstance(amounts_raw, Mapping):
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=f"{location}.amounts", index=index)
    amounts = validate_vector(amounts_raw)
    if isinstance(amounts, Err):
        return amounts.with_details(index=index)

    note = raw.get("note")
    if note is not None and not isinstance(note, str):
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=f"{location}.note", index=index)

    tx = Transaction(
        id=tx_id,
        timestamp=timestamp,
        kind=TransactionType(kind),
        amounts=amounts.value,
        note=note,
        metadata=raw.get("metadata"),
    )
    if is_all_zero(tx.amounts):
        return err(ErrorCode.ZERO_AMOUNT_TRANSACTION, index=index)
    return Ok(tx)


def validate_imported_document(raw: object) -> Result[LedgerDocument]:
    """Strictly parse an untrusted document (import file or persisted copy).

    Every transaction is validated and the history is replayed both in file
    order and in (timestamp, id) order; any prefix that overdraws a
    denomination rejects the whole document.
    """
    if not isinstance(raw, Mapping):
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field="$")

    if "schemaVersion" not in raw:
        return err(ErrorCode.MISSING_REQUIRED_FIELD, field="schemaVersion")
    schema_version = raw["schemaVersion"]
    if type(schema_version) is not int or schema_version != SCHEMA_VERSION:
        return err(ErrorCode.IMPORT_UNSUPPORTED_SCHEMA_VERSION, schema_version=schema_version)

    instants: dict[str, datetime] = {}
    for name in ("createdAt", "lastModifiedAt"):
        if name not in raw:
            return err(ErrorCode.MISSING_REQUIRED_FIELD, field=name)
        instant = _parse_instant(raw[name])
        if instant is None:
            return err(ErrorCode.IMPORT_INVALID_SCHEMA, field=name)
        instants[name] = instant

    if "transactions" not in raw:
        return err(ErrorCode.MISSING_REQUIRED_FIELD, field="transactions")
    transactions_raw = raw["transactions"]
    if not isinstance(transactions_raw, Sequence) or isinstance(transactions_raw, (str, bytes)):
        return err(ErrorCode.IMPORT_INVALID_SCHEMA, field="transactions")

    transactions: list[Transaction] = []
    balance = zero_vector()
    for index, tx_raw in enumerate(transactions_raw):
        parsed = _parse_transaction(tx_raw, index)
        if isinstance(parsed, Err):
            return parsed
        tx = parsed.value

        if tx.kind == TransactionType.DEPOSIT:
            balance = add_vectors(balance, tx.amounts)
        else:
            step = subtract_vectors(balance, tx.amounts)
            if isinstance(step, Err):
                return step.with_details(transaction_id=tx.id, index=index)
            balance = step.value
        transactions.append(tx)

    replayed = _replay(replay_order(transactions))
    if isinstance(replayed, Err):
        return replayed

    return Ok(
        LedgerDocument(
            schema_version=SCHEMA_VERSION,
            created_at=instants["createdAt"],
            last_modified_at=instants["lastModifiedAt"],
            transactions=tuple(transactions),
        )
    )


def ledger_to_dict(ledger: LedgerDocument) -> dict[str, Any]:
    """JSON-ready representation matching the import format."""
    return {
        "schemaVersion": ledger.schema_version,
        "createdAt": _format_instant(ledger.created_at),
        "lastModifiedAt": _format_instant(ledger.last_modified_at),
        "transactions": [_transaction_to_dict(tx) for tx in ledger.transactions],
    }


def _transaction_to_dict(tx: Transaction) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": tx.id,
        "timestamp": _format_instant(tx.timestamp),
        "kind": tx.kind.value,
        "amounts": tx.amounts.as_dict(),
    }
    if tx.note is not None:
        record["note"] = tx.note
    if tx.metadata is not None:
        record["metadata"] = tx.metadata
    return record


def _format_instant(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")


__all__ = [
    "SCHEMA_VERSION",
    "LedgerDocument",
    "LedgerReplayError",
    "Transaction",
    "TransactionType",
    "append_transaction",
    "compute_balance",
    "create_ledger_document",
    "ledger_to_dict",
    "replay_order",
    "validate_imported_document",
    "with_last_modified_at",
]
