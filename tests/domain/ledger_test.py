from datetime import timedelta
from typing import Any

import pytest

from domain.denominations import Denomination
from domain.ledger import (
    SCHEMA_VERSION,
    LedgerDocument,
    LedgerReplayError,
    TransactionType,
    append_transaction,
    compute_balance,
    create_ledger_document,
    ledger_to_dict,
    validate_imported_document,
)
from domain.money import DenomVector, zero_vector
from domain.result import Err, ErrorCode, Ok
from tests.constants import ONE_CP, ONE_GP, START, TWO_CP
from tests.helpers.time_utils import deposit, withdraw


def _append(ledger: LedgerDocument, *transactions: Any) -> LedgerDocument:
    for tx in transactions:
        result = append_transaction(ledger, tx)
        assert isinstance(result, Ok), result
        ledger = result.value
    return ledger


def _document(*transactions: dict[str, Any], schema_version: Any = SCHEMA_VERSION) -> dict[str, Any]:
    return {
        "schemaVersion": schema_version,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "lastModifiedAt": "2024-01-02T00:00:00.000Z",
        "transactions": list(transactions),
    }


def _raw_tx(tx_id: str, timestamp: str, kind: str, **amounts: int) -> dict[str, Any]:
    counts = {"pp": 0, "gp": 0, "ep": 0, "sp": 0, "cp": 0}
    counts.update(amounts)
    return {"id": tx_id, "timestamp": timestamp, "kind": kind, "amounts": counts}


def test_compute_balance_of_empty_history_is_zero() -> None:
    assert compute_balance([]) == zero_vector()


def test_compute_balance_replays_in_timestamp_order() -> None:
    later_deposit = deposit(ONE_GP, timestamp=START + timedelta(hours=2))
    earlier_deposit = deposit(TWO_CP, timestamp=START)
    withdrawal = withdraw(DenomVector(gp=1, cp=1), timestamp=START + timedelta(hours=3))

    balance = compute_balance([withdrawal, later_deposit, earlier_deposit])

    assert balance == DenomVector(cp=1)


def test_compute_balance_breaks_timestamp_ties_by_id() -> None:
    first = deposit(ONE_GP, timestamp=START, tx_id="a")
    second = withdraw(ONE_GP, timestamp=START, tx_id="b")

    assert compute_balance([second, first]) == zero_vector()


def test_compute_balance_raises_on_replay_overdraft() -> None:
    # Same instant, but "a" sorts first, so the withdrawal replays before the deposit.
    late_id_deposit = deposit(ONE_GP, timestamp=START, tx_id="b")
    early_id_withdraw = withdraw(ONE_GP, timestamp=START, tx_id="a")

    with pytest.raises(LedgerReplayError) as exc_info:
        compute_balance([late_id_deposit, early_id_withdraw])

    assert exc_info.value.transaction_id == "a"
    assert exc_info.value.denom == Denomination.GP
    assert exc_info.value.attempted_quantity == 1
    assert exc_info.value.available_balance == 0


def test_append_transaction_rejects_all_zero_amounts() -> None:
    ledger = create_ledger_document(START)

    result = append_transaction(ledger, deposit(zero_vector()))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.ZERO_AMOUNT_TRANSACTION


def test_append_transaction_rejects_invalid_amounts() -> None:
    ledger = create_ledger_document(START)

    result = append_transaction(ledger, deposit(DenomVector(sp=-2)))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.INVALID_AMOUNT_NEGATIVE
    assert result.error.details["denom"] == Denomination.SP


def test_append_transaction_updates_last_modified_at() -> None:
    ledger = create_ledger_document(START)
    tx = deposit(ONE_CP, timestamp=START + timedelta(days=1))

    updated = _append(ledger, tx)

    assert updated.transactions == (tx,)
    assert updated.last_modified_at == tx.timestamp
    assert updated.created_at == START
    assert ledger.transactions == ()
    assert ledger.last_modified_at == START


def test_failed_withdraw_leaves_ledger_unchanged() -> None:
    ledger = _append(create_ledger_document(START), deposit(ONE_CP))

    result = append_transaction(ledger, withdraw(TWO_CP))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.INSUFFICIENT_FUNDS
    assert result.error.details["denom"] == Denomination.CP
    assert len(ledger.transactions) == 1
    assert compute_balance(ledger.transactions) == ONE_CP


def test_withdraw_within_balance_is_appended() -> None:
    ledger = _append(create_ledger_document(START), deposit(DenomVector(gp=3, cp=2)), withdraw(DenomVector(gp=1)))

    assert compute_balance(ledger.transactions) == DenomVector(gp=2, cp=2)


def test_back_dated_withdraw_cannot_overdraw_earlier_history() -> None:
    ledger = _append(create_ledger_document(START), deposit(ONE_CP, timestamp=START + timedelta(minutes=10)))
    back_dated = withdraw(ONE_CP, timestamp=START + timedelta(minutes=5))

    result = append_transaction(ledger, back_dated)

    assert isinstance(result, Err)
    assert result.code == ErrorCode.INSUFFICIENT_FUNDS
    assert result.error.details["transaction_id"] == back_dated.id


def test_ledger_built_by_append_never_overdraws_any_prefix() -> None:
    ledger = create_ledger_document(START)
    attempts = [
        deposit(DenomVector(gp=2, sp=3)),
        withdraw(DenomVector(sp=4)),
        withdraw(DenomVector(gp=1, sp=1)),
        deposit(ONE_CP),
        withdraw(DenomVector(gp=2)),
        withdraw(DenomVector(gp=1, sp=2, cp=1)),
    ]
    for tx in attempts:
        result = append_transaction(ledger, tx)
        if isinstance(result, Ok):
            ledger = result.value

    transactions = list(ledger.transactions)
    for end in range(len(transactions) + 1):
        balance = compute_balance(transactions[:end])
        assert all(count >= 0 for count in balance.as_dict().values())
    assert compute_balance(transactions) == zero_vector()


def test_validate_imported_document_accepts_valid_document() -> None:
    raw = _document(
        _raw_tx("d1", "2024-01-01T00:00:00.000Z", "deposit", gp=2, cp=1),
        _raw_tx("w1", "2024-01-02T00:00:00Z", "withdraw", gp=1),
    )
    raw["transactions"][0]["note"] = "Goblin hoard"
    raw["transactions"][0]["metadata"] = {"session": 4}

    result = validate_imported_document(raw)

    assert isinstance(result, Ok)
    document = result.value
    assert document.schema_version == SCHEMA_VERSION
    assert [tx.kind for tx in document.transactions] == [TransactionType.DEPOSIT, TransactionType.WITHDRAW]
    assert document.transactions[0].note == "Goblin hoard"
    assert document.transactions[0].metadata == {"session": 4}
    assert compute_balance(document.transactions) == DenomVector(gp=1, cp=1)


def test_validate_imported_document_round_trips_exported_dict() -> None:
    ledger = _append(create_ledger_document(START), deposit(DenomVector(pp=1, cp=4), note="loot"), withdraw(ONE_CP))

    result = validate_imported_document(ledger_to_dict(ledger))

    assert result == Ok(ledger)


@pytest.mark.parametrize("schema_version", [1, 2, 4, "3", 3.0, True])
def test_validate_imported_document_requires_exact_schema_version(schema_version: Any) -> None:
    result = validate_imported_document(_document(schema_version=schema_version))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.IMPORT_UNSUPPORTED_SCHEMA_VERSION


def test_validate_imported_document_rejects_non_objects() -> None:
    for raw in (None, [], "ledger", 3):
        result = validate_imported_document(raw)
        assert isinstance(result, Err)
        assert result.code == ErrorCode.IMPORT_INVALID_SCHEMA


@pytest.mark.parametrize("field", ["id", "timestamp", "kind", "amounts"])
def test_validate_imported_document_requires_transaction_fields(field: str) -> None:
    tx = _raw_tx("d1", "2024-01-01T00:00:00Z", "deposit", cp=1)
    del tx[field]

    result = validate_imported_document(_document(tx))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.MISSING_REQUIRED_FIELD
    assert result.error.details["field"] == f"transactions[0].{field}"


def test_validate_imported_document_requires_top_level_fields() -> None:
    raw = _document()
    del raw["transactions"]

    result = validate_imported_document(raw)

    assert isinstance(result, Err)
    assert result.code == ErrorCode.MISSING_REQUIRED_FIELD
    assert result.error.details["field"] == "transactions"


@pytest.mark.parametrize(
    ("tx", "field"),
    [
        (_raw_tx("d1", "2024-01-01T00:00:00Z", "adjust", cp=1), "transactions[0].kind"),
        (_raw_tx("d1", "yesterday", "deposit", cp=1), "transactions[0].timestamp"),
        (_raw_tx("", "2024-01-01T00:00:00Z", "deposit", cp=1), "transactions[0].id"),
        ({**_raw_tx("d1", "2024-01-01T00:00:00Z", "deposit"), "amounts": [1, 0, 0, 0, 0]}, "transactions[0].amounts"),
    ],
)
def test_validate_imported_document_rejects_malformed_transactions(tx: dict[str, Any], field: str) -> None:
    result = validate_imported_document(_document(tx))

    assert isinstance(result, Err)
    assert result.code == ErrorCode.IMPORT_INVALID_SCHEMA
    assert result.error.details["field"] == field


def test_validate_imported_document_rejects_zero_and_invalid_amounts() -> None:
    zero = validate_imported_document(_document(_raw_tx("d1", "2024-01-01T00:00:00Z", "deposit")))
    fractional = validate_imported_document(
        _document(
            _raw_tx("d1", "2024-01-01T00:00:00Z", "deposit", cp=1),
            {**_raw_tx("d2", "2024-01-02T00:00:00Z", "deposit"), "amounts": {"pp": 0, "gp": 0.5, "ep": 0, "sp": 0, "cp": 0}},
        )
    )

    assert isinstance(zero, Err)
    assert zero.code == ErrorCode.ZERO_AMOUNT_TRANSACTION
    assert isinstance(fractional, Err)
    assert fractional.code == ErrorCode.INVALID_AMOUNT_NON_INTEGER
    assert fractional.error.details["index"] == 1


def test_validate_imported_document_rejects_overdraft_prefix() -> None:
    raw = _document(
        _raw_tx("d1", "2024-01-01T00:00:00Z", "deposit", cp=1),
        _raw_tx("w1", "2024-01-02T00:00:00Z", "withdraw", cp=2),
        _raw_tx("d2", "2024-01-03T00:00:00Z", "deposit", cp=5),
    )

    result = validate_imported_document(raw)

    assert isinstance(result, Err)
    assert result.code == ErrorCode.INSUFFICIENT_FUNDS
    assert result.error.details["denom"] == Denomination.CP
    assert result.error.details["index"] == 1


def test_validate_imported_document_rejects_overdraft_in_replay_order() -> None:
    # Fine in file order, but the withdrawal is stamped before the deposit.
    raw = _document(
        _raw_tx("d1", "2024-01-02T00:00:00Z", "deposit", sp=1),
        _raw_tx("w1", "2024-01-01T00:00:00Z", "withdraw", sp=1),
    )

    result = validate_imported_document(raw)

    assert isinstance(result, Err)
    assert result.code == ErrorCode.INSUFFICIENT_FUNDS
    assert result.error.details["transaction_id"] == "w1"
