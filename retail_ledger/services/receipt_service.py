"""
Receipt log — append-only record of money applied to entries.

Appending a receipt does not move any balance by itself; the
reconciliation engine appends and updates the entry together.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from retail_ledger.models.enums import normalize_method
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.models.receipt import Receipt
from retail_ledger.money import money, ZERO
from retail_ledger.services.errors import InvalidAmount, NotFound

logger = logging.getLogger(__name__)


class ReceiptLog:

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        transaction_id: uuid.UUID,
        amount: Decimal,
        method: str | None,
        note: str | None = None,
        created_by: str | None = None,
    ) -> Receipt:
        """Record a receipt against one entry. Raises InvalidAmount, NotFound."""
        amount = money(amount)
        if amount <= ZERO:
            raise InvalidAmount(f"Receipt amount must be positive, got {amount}")

        if self.db.get(LedgerEntry, transaction_id) is None:
            raise NotFound(f"Ledger entry {transaction_id} not found")

        receipt = Receipt(
            transaction_id=transaction_id,
            amount=amount,
            method=normalize_method(method),
            note=note,
            created_by=created_by,
        )
        self.db.add(receipt)
        self.db.flush()
        return receipt

    def get(self, receipt_id: uuid.UUID) -> Receipt:
        receipt = self.db.get(Receipt, receipt_id)
        if not receipt:
            raise NotFound(f"Receipt {receipt_id} not found")
        return receipt

    def list_for(self, transaction_id: uuid.UUID) -> list[Receipt]:
        """Return all receipts for an entry, oldest first."""
        receipts = self.db.execute(
            select(Receipt)
            .where(Receipt.transaction_id == transaction_id)
            .order_by(Receipt.created_at, Receipt.id)
        ).scalars().all()
        return list(receipts)

    def total_for(self, transaction_id: uuid.UUID) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(Receipt.amount), 0))
            .where(Receipt.transaction_id == transaction_id)
        ).scalar()
        return money(total)

    def _filtered(self, transaction_id=None, person=None):
        stmt = select(Receipt)
        if person:
            stmt = stmt.join(
                LedgerEntry, LedgerEntry.id == Receipt.transaction_id
            ).where(LedgerEntry.person == person)
        if transaction_id:
            stmt = stmt.where(Receipt.transaction_id == transaction_id)
        return stmt

    def query(
        self,
        transaction_id: uuid.UUID | None = None,
        person: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Receipt], int]:
        """List receipts by entry or by counterparty, newest first."""
        stmt = self._filtered(transaction_id, person)
        total = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        receipts = self.db.execute(
            stmt.order_by(Receipt.created_at.desc()).limit(limit).offset(offset)
        ).scalars().all()
        return list(receipts), total
