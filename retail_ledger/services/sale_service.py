"""
Sale service — point-of-sale checkout.

One sale, one unit of work:
1. Pre-check stock for every line (nothing is touched on a shortage)
2. Decrement stock conditionally, product by product
3. Record the sale header and its lines
4. Post the ledger side: a paid "Vendas" entry plus receipt per
   immediate tender, installments for the part sold on credit
5. Publish a "sale" event once everything above is in

A failure anywhere in 1-4 leaves no stock decrement, no sale,
no entries and no receipts behind.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session

from retail_ledger.config import get_settings
from retail_ledger.models.enums import (
    EntryStatus,
    SourceKind,
    SALES_CATEGORY,
    CREDIT_METHOD,
    is_credit_method,
    normalize_method,
)
from retail_ledger.models.sale import Sale, SaleItem
from retail_ledger.money import money, ZERO
from retail_ledger.schemas.ledger import LedgerEntryCreate
from retail_ledger.schemas.sale import SaleCreate, SaleLine, SaleResult
from retail_ledger.services.activity_feed import ActivityFeed, activity_feed
from retail_ledger.services.errors import InsufficientStock, InvalidAmount, NotFound
from retail_ledger.services.installment_service import InstallmentSplitter
from retail_ledger.services.inventory import InventoryGateway, SqlInventory
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.receipt_service import ReceiptLog
from retail_ledger.services.unit_of_work import unit_of_work
from retail_ledger.timeutils import now_local, today_local

logger = logging.getLogger(__name__)

MIXED_METHOD = "misto"
SALE_DESCRIPTION = "Venda PDV"


def _shortage_line(name: str, available: int, requested: int) -> str:
    return f"Produto {name} disponível: {available}, solicitado: {requested}"


class SaleService:

    def __init__(
        self,
        db: Session,
        inventory: InventoryGateway | None = None,
        feed: ActivityFeed | None = None,
    ):
        self.db = db
        self.inventory = inventory or SqlInventory(db)
        self.feed = feed or activity_feed
        self.ledger_service = LedgerService(db)
        self.receipt_log = ReceiptLog(db)
        self.splitter = InstallmentSplitter(db)

    def create_sale(self, request: SaleCreate) -> SaleResult:
        """
        Check out a sale. Raises InsufficientStock, InvalidAmount,
        Overpayment (upfront larger than the first installment) or
        StorageFailure; in every case nothing is persisted.
        """
        tenders = self._tenders(request)
        sale_id = uuid.uuid4()
        total = money(request.total)
        credit_amount = sum(
            (amount for method, amount in tenders if is_credit_method(method)),
            ZERO,
        )
        upfront = money(request.amount_paid) if self._legacy_credit(request) else ZERO

        entry_ids: list[uuid.UUID] = []
        receipt_ids: list[uuid.UUID] = []

        with unit_of_work(self.db, label=f"sale {sale_id}"):
            self._reserve_stock(request.items)

            sale = Sale(
                id=sale_id,
                client_name=request.client_name,
                subtotal=money(
                    request.subtotal if request.subtotal is not None
                    else total + money(request.discount)
                ),
                discount=money(request.discount),
                total=total,
                payment_method=(
                    tenders[0][0] if len(tenders) == 1 else MIXED_METHOD
                ),
                installments=request.installments,
                credit_amount=credit_amount,
                amount_paid=total - credit_amount + upfront,
                notes=request.notes,
                sale_date=now_local(),
            )
            for line in request.items:
                sale.items.append(SaleItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=money(line.unit_price),
                    total_price=money(line.unit_price * line.quantity),
                ))
            self.db.add(sale)
            self.db.flush()

            for method, amount in tenders:
                if is_credit_method(method) or (
                    not request.payments and request.installments > 1
                ):
                    split = self.splitter.split(
                        total=amount,
                        installment_count=request.installments,
                        payment_method=method,
                        sale_id=sale_id,
                        person=request.client_name,
                        first_due_offset_days=request.first_due_offset_days,
                        amount_paid_upfront=upfront if is_credit_method(method) else ZERO,
                        upfront_method=request.upfront_method,
                        description=SALE_DESCRIPTION,
                        created_by=request.created_by,
                    )
                    entry_ids.extend(entry.id for entry in split.entries)
                    receipt_ids.extend(receipt.id for receipt in split.receipts)
                else:
                    entry_id, receipt_id = self._post_paid_tender(
                        request, sale_id, method, amount
                    )
                    entry_ids.append(entry_id)
                    receipt_ids.append(receipt_id)

        logger.info(
            "Sale %s recorded: total=%s credit=%s tenders=%s entries=%d",
            sale_id, total, credit_amount,
            [method for method, _ in tenders], len(entry_ids),
        )
        self.feed.publish(
            "sale",
            f"Venda registrada: {total}",
            {
                "sale_id": str(sale_id),
                "total": str(total),
                "client": request.client_name,
            },
        )
        return SaleResult(
            sale_id=sale_id,
            created_entry_ids=entry_ids,
            created_receipt_ids=receipt_ids,
        )

    @staticmethod
    def _legacy_credit(request: SaleCreate) -> bool:
        return not request.payments and is_credit_method(request.payment_method)

    def _tenders(self, request: SaleCreate) -> list[tuple[str, Decimal]]:
        """
        Resolve the payment into (method, amount) pairs, one per method.

        Mixed tender lines with the same method are merged and must
        add up to the sale total to the cent.
        """
        if not request.payments:
            method = (
                normalize_method(request.payment_method)
                or get_settings().DEFAULT_UPFRONT_METHOD
            )
            return [(method, money(request.total))]

        grouped: dict[str, Decimal] = {}
        for tender in request.payments:
            method = normalize_method(tender.method) or CREDIT_METHOD
            grouped[method] = grouped.get(method, ZERO) + money(tender.amount)

        paid = sum(grouped.values(), ZERO)
        if paid != money(request.total):
            raise InvalidAmount(
                f"Payments add up to {paid}, sale total is {money(request.total)}"
            )
        tenders = [(method, amount) for method, amount in grouped.items() if amount > ZERO]
        if not tenders:
            raise InvalidAmount("Sale has no payment with a positive amount")
        return tenders

    def _reserve_stock(self, items: list[SaleLine]) -> None:
        quantities: dict[str, int] = {}
        names: dict[str, str] = {}
        for line in items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity
            names.setdefault(line.product_id, line.product_name or line.product_id)

        shortages = []
        for product_id, requested in quantities.items():
            try:
                available = self.inventory.check_stock(product_id)
            except NotFound:
                available = 0
            if available < requested:
                shortages.append(
                    _shortage_line(names[product_id], available, requested)
                )
        if shortages:
            logger.warning("Sale rejected, insufficient stock: %s", shortages)
            raise InsufficientStock(shortages)

        for product_id, requested in quantities.items():
            if not self.inventory.decrement_if_available(product_id, requested):
                available = self.inventory.check_stock(product_id)
                raise InsufficientStock(
                    [_shortage_line(names[product_id], available, requested)]
                )

    def _post_paid_tender(self, request, sale_id, method, amount):
        entry = self.ledger_service.create_entry(
            LedgerEntryCreate(
                category=SALES_CATEGORY,
                description=f"{SALE_DESCRIPTION} ({method})",
                due_date=today_local(),
                person=request.client_name or "",
                value=amount,
                value_due=ZERO,
                paid=True,
                status=EntryStatus.PAGO,
                payment_method=method,
                notes=f"sale:{sale_id}",
            ),
            source_kind=SourceKind.SALE,
            sale_id=sale_id,
        )
        receipt = self.receipt_log.append(
            entry.id, amount, method,
            note="Recebimento no ato da venda",
            created_by=request.created_by,
        )
        return entry.id, receipt.id
