"""
Installment splitter — turns a sale amount into N ledger entries.

Each installment is an independent entry due i * interval days
from today. Shares are rounded down to the cent and the last
installment absorbs the remainder, so the set always adds up to
the amount being split.

An immediate method (card, pix, cash) means the money is already
settled: every installment is created paid, with a matching
receipt. "prazo" installments start pending; an upfront payment
is applied as a receipt to the first installment only.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from retail_ledger.config import get_settings
from retail_ledger.models.enums import (
    EntryStatus,
    SourceKind,
    SALES_CATEGORY,
    is_credit_method,
    normalize_method,
)
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.models.receipt import Receipt
from retail_ledger.money import money, split_evenly, ZERO
from retail_ledger.schemas.ledger import LedgerEntryCreate
from retail_ledger.services.errors import InvalidAmount
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.reconciliation_service import ReconciliationService
from retail_ledger.timeutils import add_days, now_local, today_local

logger = logging.getLogger(__name__)


@dataclass
class SplitResult:
    entries: list[LedgerEntry] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)


def installment_note(number: int, count: int, sale_id) -> str:
    return f"Parcela {number}/{count} • sale:{sale_id}"


class InstallmentSplitter:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.receipt_log = ReceiptLog(db)
        self.reconciliation = ReconciliationService(db)

    def split(
        self,
        total: Decimal,
        installment_count: int,
        payment_method: str,
        sale_id: uuid.UUID,
        person: str | None = None,
        first_due_offset_days: int | None = None,
        amount_paid_upfront: Decimal = ZERO,
        upfront_method: str | None = None,
        description: str | None = None,
        created_by: str | None = None,
        start_date: date | None = None,
    ) -> SplitResult:
        """
        Create installment entries for `total`.

        Does not open its own unit of work: it is always called from
        inside the sale's unit, and the upfront receipt goes through
        the same engine every other receipt does.
        """
        total = money(total)
        if total <= ZERO:
            raise InvalidAmount(f"Split total must be positive, got {total}")
        if installment_count < 1:
            raise InvalidAmount(
                f"Installment count must be at least 1, got {installment_count}"
            )

        settings = get_settings()
        interval = (
            settings.INSTALLMENT_INTERVAL_DAYS
            if first_due_offset_days is None
            else first_due_offset_days
        )
        method = normalize_method(payment_method) or settings.DEFAULT_UPFRONT_METHOD
        on_credit = is_credit_method(method)
        upfront = money(amount_paid_upfront)
        if upfront > ZERO and not on_credit:
            raise InvalidAmount(
                "An upfront payment only applies to credit ('prazo') sales"
            )

        start = start_date or today_local()
        result = SplitResult()
        shares = split_evenly(total, installment_count)

        for number, share in enumerate(shares, start=1):
            label = f"Parcela {number}/{installment_count}"
            entry = self.ledger_service.create_entry(
                LedgerEntryCreate(
                    category=SALES_CATEGORY,
                    description=f"{description or 'Venda'} - {label}",
                    due_date=add_days(start, number * interval),
                    person=person or "",
                    value=share,
                    value_due=share if on_credit else ZERO,
                    paid=not on_credit,
                    status=EntryStatus.PENDENTE if on_credit else EntryStatus.PAGO,
                    payment_date=None if on_credit else now_local(),
                    payment_method=method,
                    notes=installment_note(number, installment_count, sale_id),
                ),
                source_kind=SourceKind.INSTALLMENT,
                sale_id=sale_id,
                installment_number=number,
                installment_count=installment_count,
            )
            result.entries.append(entry)

            if not on_credit:
                result.receipts.append(self.receipt_log.append(
                    entry.id, share, method,
                    note=f"Recebimento - {label.lower()}",
                    created_by=created_by,
                ))
            elif number == 1 and upfront > ZERO:
                # Down payment reduces installment 1 only.
                result.receipts.append(self.reconciliation.apply_receipt(
                    entry.id,
                    upfront,
                    upfront_method or settings.DEFAULT_UPFRONT_METHOD,
                    note="Entrada paga no ato da compra",
                    created_by=created_by,
                ))

        logger.info(
            "Split %s into %d installment(s) via %s for sale %s (upfront=%s)",
            total, installment_count, method, sale_id, upfront,
        )
        return result
