from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.orm import Session

from db import models
from domain.ledger import LedgerDocument, Transaction, TransactionType
from domain.money import DenomVector

# One local session owns exactly one ledger document.
ACTIVE_DOCUMENT_ID = 1


class LedgerDocumentRepository:
    """Stores the active ledger document, always replacing it wholesale."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, document: LedgerDocument) -> None:
        try:
            self._replace_rows(document)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def _replace_rows(self, document: LedgerDocument) -> None:
        self._session.execute(delete(models.TransactionOrm).execution_options(synchronize_session=False))
        self._session.execute(delete(models.LedgerDocumentOrm).execution_options(synchronize_session=False))
        self._session.expunge_all()

        orm_document = models.LedgerDocumentOrm(
            id=ACTIVE_DOCUMENT_ID,
            schema_version=document.schema_version,
            created_at=document.created_at,
            last_modified_at=document.last_modified_at,
        )
        orm_document.transactions = [
            models.TransactionOrm(
                transaction_id=tx.id,
                position=position,
                timestamp=tx.timestamp,
                kind=tx.kind.value,
                pp=tx.amounts.pp,
                gp=tx.amounts.gp,
                ep=tx.amounts.ep,
                sp=tx.amounts.sp,
                cp=tx.amounts.cp,
                note=tx.note,
                metadata_json=tx.metadata,
            )
            for position, tx in enumerate(document.transactions)
        ]

        self._session.add(orm_document)

    def load(self) -> LedgerDocument | None:
        orm_document = self._session.get(models.LedgerDocumentOrm, ACTIVE_DOCUMENT_ID)
        if orm_document is None:
            return None
        return self._to_domain(orm_document)

    @staticmethod
    def _to_domain(orm_document: models.LedgerDocumentOrm) -> LedgerDocument:
        transactions = tuple(
            Transaction(
                id=tx.transaction_id,
                timestamp=_utc(tx.timestamp),
                kind=TransactionType(tx.kind),
                amounts=DenomVector(pp=tx.pp, gp=tx.gp, ep=tx.ep, sp=tx.sp, cp=tx.cp),
                note=tx.note,
                metadata=tx.metadata_json,
            )
            for tx in orm_document.transactions
        )
        return LedgerDocument(
            schema_version=orm_document.schema_version,
            created_at=_utc(orm_document.created_at),
            last_modified_at=_utc(orm_document.last_modified_at),
            transactions=transactions,
        )


def _utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp
