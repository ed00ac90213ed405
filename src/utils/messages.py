from __future__ import annotations

from domain.result import DomainError, ErrorCode

_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_PARTY_SIZE: "Party size must be a whole number of at least 1.",
    ErrorCode.INVALID_AMOUNT_NEGATIVE: "Coin counts cannot be negative ({denom}).",
    ErrorCode.INVALID_AMOUNT_NON_INTEGER: "Coin counts must be whole numbers ({denom}).",
    ErrorCode.INVALID_AMOUNT_NOT_FINITE: "Coin counts must be finite numbers ({denom}).",
    ErrorCode.ZERO_AMOUNT_TRANSACTION: "Nothing to record: every denomination is zero.",
    ErrorCode.INSUFFICIENT_FUNDS: "Not enough {denom} in the fund (requested {requested}, available {available}).",
    ErrorCode.FIXED_PREALLOCATION_EXCEEDS_LOOT: (
        "Fixed set-aside exceeds the loot in {denom} (requested {requested}, available {available})."
    ),
    ErrorCode.INVALID_PERCENT: "Percent must be between 0 and 100.",
    ErrorCode.DEGENERATE_LOOT_TOTAL: "A percent set-aside needs loot worth more than nothing.",
    ErrorCode.IMPORT_PARSE_ERROR: "The ledger file could not be read as JSON.",
    ErrorCode.IMPORT_INVALID_SCHEMA: "The ledger file is malformed ({field}).",
    ErrorCode.IMPORT_UNSUPPORTED_SCHEMA_VERSION: "Unsupported ledger schema version: {schema_version}.",
    ErrorCode.MISSING_REQUIRED_FIELD: "Missing required field: {field}.",
    ErrorCode.INVALID_PREALLOCATION_MODE: "Unknown set-aside mode: {mode}.",
    ErrorCode.EXPORT_WRITE_ERROR: "Could not write the ledger file {path} ({reason}).",
}


class _Fallback(dict[str, object]):
    def __missing__(self, key: str) -> str:
        return "?"


def describe_error(error: DomainError) -> str:
    template = _MESSAGES.get(error.code, error.code.value)
    return template.format_map(_Fallback({key: str(value) for key, value in error.details.items()}))
