from __future__ import annotations

import json
import logging
from pathlib import Path

from domain.ledger import LedgerDocument, ledger_to_dict, validate_imported_document
from domain.result import ErrorCode, Ok, Result, err

logger = logging.getLogger(__name__)


def ledger_to_json(ledger: LedgerDocument) -> str:
    return json.dumps(ledger_to_dict(ledger), indent=2)


def parse_ledger_json(text: str) -> Result[LedgerDocument]:
    """Parse and fully validate an exported ledger. Import is replace-only."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        return err(ErrorCode.IMPORT_PARSE_ERROR, source="parse", line=exc.lineno, column=exc.colno)
    return validate_imported_document(raw)


def read_ledger_file(path: Path) -> Result[LedgerDocument]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read ledger file %s: %s", path, exc)
        return err(ErrorCode.IMPORT_PARSE_ERROR, source="file", path=str(path))
    return parse_ledger_json(text)


def write_ledger_file(path: Path, ledger: LedgerDocument) -> Result[Path]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(ledger_to_json(ledger))
            handle.write("\n")
    except OSError as exc:
        logger.warning("Could not write ledger file %s: %s", path, exc)
        return err(ErrorCode.EXPORT_WRITE_ERROR, path=str(path), reason=exc.strerror or str(exc))
    return Ok(path)


__all__ = ["ledger_to_json", "parse_ledger_json", "read_ledger_file", "write_ledger_file"]
