"""
Reconciliation engine — applies receipts to ledger entries.

This service enforces the rules that keep balances honest:
1. A receipt is positive and never exceeds the remaining balance
   (no silent clamping; an overpayment is a business error).
2. The sum of an entry's receipts equals abs(value) - value_due.
3. status is "pago" exactly when value_due reaches zero, and
   "parcial" while a receipted balance remains.
4. A receipt touches only the entry it names. Installments of
   the same sale are never rebalanced against each other.
5. A credit-sale entry keeps its "prazo" method forever, so the
   outstanding-credit report can still find it.

No other service moves value_due. The caller controls the commit.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session

from retail_ledger.config import get_settings
from retail_ledger.models.enums import EntryStatus, is_credit_method, normalize_method
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.models.receipt import Receipt
from retail_ledger.money import money, ZERO
from retail_ledger.schemas.receipt import (
    BulkReceiptItem,
    BulkReceiptItemResult,
    BulkReceiptResult,
    ReceiptResponse,
)
from retail_ledger.services.errors import (
    EntryNotReceivable,
    InvalidAmount,
    LedgerError,
    Overpayment,
)
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.unit_of_work import unit_of_work
from retail_ledger.timeutils import now_local

logger = logging.getLogger(__name__)


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.receipt_log = ReceiptLog(db)
        self.epsilon = get_settings().OVERPAYMENT_EPSILON

    def apply_receipt(
        self,
        entry_id: uuid.UUID,
        amount: Decimal,
        method: str | None,
        note: str | None = None,
        created_by: str | None = None,
    ) -> Receipt:
        """
        Apply one receipt to one entry.

        Runs as its own unit of work: the receipt row and the entry
        update land together or not at all. The entry UPDATE is
        guarded by its version counter, so a concurrent receipt
        that already moved the balance aborts this one with
        ConcurrentUpdate instead of slipping past the overpayment
        check.
        """
        with unit_of_work(self.db, label=f"receipt on entry {entry_id}"):
            return self._apply(entry_id, amount, method, note, created_by)

    def _apply(self, entry_id, amount, method, note, created_by) -> Receipt:
        entry = self.ledger_service.get_entry(entry_id)

        if entry.status == EntryStatus.CANCELADO:
            raise EntryNotReceivable(
                f"Ledger entry {entry_id} is cancelled and cannot take receipts"
            )

        current_due = money(entry.current_due)
        amount = money(amount)

        if amount <= ZERO:
            raise InvalidAmount(f"Receipt amount must be positive, got {amount}")

        if amount > current_due + self.epsilon:
            logger.warning(
                "Rejected overpayment on entry %s: amount=%s due=%s",
                entry_id, amount, current_due,
            )
            raise Overpayment(entry_id, amount, current_due)

        new_due = max(ZERO, current_due - amount)

        receipt = self.receipt_log.append(
            entry.id, amount, method, note=note, created_by=created_by
        )

        self._settle(entry, new_due, method)
        self.db.flush()

        logger.info(
            "Applied receipt %s to entry %s: amount=%s method=%s due %s -> %s",
            receipt.id, entry.id, amount, receipt.method, current_due, new_due,
        )
        return receipt

    @staticmethod
    def _settle(entry: LedgerEntry, new_due: Decimal, method: str | None) -> None:
        entry.value_due = new_due
        entry.paid = new_due == ZERO
        if new_due == ZERO:
            entry.status = EntryStatus.PAGO
            entry.payment_date = now_local()
        else:
            entry.status = EntryStatus.PARCIAL

        method = normalize_method(method)
        if method and not (entry.is_credit_sale or is_credit_method(entry.payment_method)):
            entry.payment_method = method

    def apply_receipts(
        self, items: list[BulkReceiptItem], atomic: bool = True
    ) -> BulkReceiptResult:
        """
        Apply many receipts, each with the single-receipt algorithm.

        atomic=True: every item runs sequentially in one unit of
        work. The first failure rolls back all items and is
        re-raised with the failing item's index.

        atomic=False: best effort. Each item is its own unit; the
        result reports, per item, the receipt or the error so the
        caller can see exactly what was applied.
        """
        if not items:
            raise InvalidAmount("No receipt items provided")

        if atomic:
            return self._apply_all_or_nothing(items)
        return self._apply_best_effort(items)

    def _apply_all_or_nothing(self, items) -> BulkReceiptResult:
        results = []
        with unit_of_work(self.db, label=f"bulk receipt of {len(items)} items"):
            for index, item in enumerate(items):
                try:
                    receipt = self._apply(
                        item.transaction_id, item.amount, item.method,
                        item.note, item.created_by,
                    )
                except LedgerError as e:
                    e.item_index = index
                    logger.warning(
                        "Bulk receipt aborted at item %d (entry %s): %s",
                        index, item.transaction_id, e,
                    )
                    raise
                results.append(BulkReceiptItemResult(
                    index=index,
                    transaction_id=item.transaction_id,
                    ok=True,
                    receipt=ReceiptResponse.model_validate(receipt),
                ))
        return BulkReceiptResult(atomic=True, items=results)

    def _apply_best_effort(self, items) -> BulkReceiptResult:
        results = []
        for index, item in enumerate(items):
            try:
                receipt = self.apply_receipt(
                    item.transaction_id, item.amount, item.method,
                    item.note, item.created_by,
                )
            except LedgerError as e:
                logger.warning(
                    "Bulk receipt item %d (entry %s) not applied: %s",
                    index, item.transaction_id, e,
                )
                results.append(BulkReceiptItemResult(
                    index=index,
                    transaction_id=item.transaction_id,
                    ok=False,
                    error_code=e.code,
                    error=str(e),
                ))
                continue
            results.append(BulkReceiptItemResult(
                index=index,
                transaction_id=item.transaction_id,
                ok=True,
                receipt=ReceiptResponse.model_validate(receipt),
            ))
        return BulkReceiptResult(atomic=False, items=results)
