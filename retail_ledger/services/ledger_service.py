"""
Ledger entry store.

Typed create/read/update/delete over ledger entries. This is a
record store: it normalizes input (money, signs, method names)
and keeps the stored status consistent with value_due, but it
holds no reconciliation rules. Balances move only through
ReconciliationService.

The service takes a database session as a constructor argument,
so the caller controls the transaction boundary.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from retail_ledger.models.enums import (
    EntryStatus,
    EntryType,
    SourceKind,
    SALES_CATEGORY,
    is_credit_method,
    normalize_method,
)
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.money import money, ZERO
from retail_ledger.schemas.ledger import (
    LedgerEntryCreate,
    LedgerEntryUpdate,
    LedgerEntryFilters,
)
from retail_ledger.services.errors import InvalidAmount, NotFound
from retail_ledger.timeutils import now_local, today_local

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Outros"

# Fields that identify where an entry came from; fixed at creation.
IMMUTABLE_FIELDS = {"is_credit_sale", "source_kind", "sale_id"}


def _signed(value, entry_type):
    value = money(value)
    if entry_type == EntryType.SAIDA:
        return -abs(value)
    if entry_type == EntryType.ENTRADA:
        return abs(value)
    return value


def _month_bounds(month: str) -> tuple[date, date]:
    year, mon = (int(part) for part in month.split("-"))
    first = date(year, mon, 1)
    if mon == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, mon + 1, 1)
    return first, next_first


class LedgerService:

    def __init__(self, db: Session):
        self.db = db

    def create_entry(
        self,
        request: LedgerEntryCreate,
        source_kind: SourceKind = SourceKind.MANUAL,
        sale_id: uuid.UUID | None = None,
        installment_number: int | None = None,
        installment_count: int | None = None,
    ) -> LedgerEntry:
        """
        Create a ledger entry.

        value_due defaults to the full amount, or to zero when the
        entry is created already paid. is_credit_sale is derived
        from the payment method here, once, and never re-derived.
        """
        value = _signed(request.value, request.type)

        category = request.category
        if not category:
            category = (
                SALES_CATEGORY if request.type == EntryType.VENDA
                else DEFAULT_CATEGORY
            )

        created_paid = request.paid or request.status == EntryStatus.PAGO
        if request.value_due is not None:
            value_due = money(request.value_due)
        else:
            value_due = ZERO if created_paid else abs(value)

        if value_due > abs(value):
            raise InvalidAmount(
                f"value_due {value_due} exceeds entry value {abs(value)}"
            )

        if value_due == ZERO:
            status = EntryStatus.PAGO
        elif request.status in (None, EntryStatus.PAGO):
            status = EntryStatus.PENDENTE
        else:
            status = request.status

        payment_date = request.payment_date
        if status == EntryStatus.PAGO and payment_date is None:
            payment_date = now_local()

        method = normalize_method(request.payment_method)

        entry = LedgerEntry(
            category=category,
            description=request.description or "",
            due_date=request.due_date or today_local(),
            person=request.person or "",
            value=value,
            value_due=value_due,
            paid=value_due == ZERO,
            status=status,
            payment_date=payment_date,
            payment_method=method,
            is_credit_sale=is_credit_method(method),
            source_kind=source_kind,
            sale_id=sale_id,
            installment_number=installment_number,
            installment_count=installment_count,
            notes=request.notes,
            type=request.type.value if request.type else None,
        )
        self.db.add(entry)
        self.db.flush()
        logger.debug(
            "Created ledger entry %s value=%s due=%s method=%s kind=%s",
            entry.id, value, value_due, method, source_kind.value,
        )
        return entry

    def get_entry(self, entry_id: uuid.UUID) -> LedgerEntry:
        """Get an entry by ID. Raises NotFound."""
        entry = self.db.get(LedgerEntry, entry_id)
        if not entry:
            raise NotFound(f"Ledger entry {entry_id} not found")
        return entry

    def update_entry(
        self, entry_id: uuid.UUID, request: LedgerEntryUpdate
    ) -> LedgerEntry:
        """
        Apply a partial update.

        Only fields present (and non-null) in the request are
        written. Marking an entry paid without a value_due settles
        it; setting value_due re-derives paid and status. An edit that
        would leave more due than the entry is worth is rejected, and
        switching the method to prazo flags the entry as a credit sale.
        """
        entry = self.get_entry(entry_id)
        fields = {
            name: value
            for name, value in request.model_dump(exclude_unset=True).items()
            if value is not None and name not in IMMUTABLE_FIELDS
        }

        entry_type = fields.pop("type", None)
        if entry_type is not None:
            entry.type = entry_type.value
        if "value" in fields:
            entry.value = _signed(fields.pop("value"), entry_type)
        elif entry_type is not None:
            entry.value = _signed(entry.value, entry_type)

        if "payment_method" in fields:
            entry.payment_method = normalize_method(fields.pop("payment_method"))
            if is_credit_method(entry.payment_method):
                entry.is_credit_sale = True

        settle = fields.pop("paid", False) or fields.get("status") == EntryStatus.PAGO
        if "value_due" in fields:
            value_due = money(fields.pop("value_due"))
        elif settle:
            value_due = ZERO
        else:
            value_due = None

        for name, value in fields.items():
            setattr(entry, name, value)

        if value_due is not None:
            entry.value_due = value_due
        # A value edit never leaves more due than the entry is worth.
        if money(entry.current_due) > abs(money(entry.value)):
            raise InvalidAmount(
                f"value_due {money(entry.current_due)} exceeds entry value "
                f"{abs(money(entry.value))}"
            )

        # Keep paid/status consistent with the balance.
        if entry.value_due is not None and money(entry.value_due) == ZERO:
            entry.paid = True
            entry.status = EntryStatus.PAGO
            if entry.payment_date is None:
                entry.payment_date = now_local()
        elif entry.value_due is not None:
            entry.paid = False
            if entry.status == EntryStatus.PAGO:
                entry.status = (
                    EntryStatus.PARCIAL
                    if money(entry.value_due) < abs(money(entry.value))
                    else EntryStatus.PENDENTE
                )

        self.db.flush()
        return entry

    def delete_entry(self, entry_id: uuid.UUID) -> None:
        """Delete an entry and, by cascade, its receipts."""
        entry = self.get_entry(entry_id)
        self.db.delete(entry)
        self.db.flush()
        logger.info("Deleted ledger entry %s", entry_id)

    def _filtered(self, filters: LedgerEntryFilters):
        stmt = select(LedgerEntry)
        if filters.search:
            term = f"%{filters.search}%"
            stmt = stmt.where(or_(
                LedgerEntry.description.ilike(term),
                LedgerEntry.person.ilike(term),
                LedgerEntry.category.ilike(term),
            ))
        if filters.status:
            stmt = stmt.where(LedgerEntry.status == filters.status)
        if filters.month:
            first, next_first = _month_bounds(filters.month)
            stmt = stmt.where(
                LedgerEntry.due_date >= first,
                LedgerEntry.due_date < next_first,
            )
        if filters.person:
            stmt = stmt.where(LedgerEntry.person == filters.person)
        if filters.category:
            stmt = stmt.where(
                func.lower(LedgerEntry.category) == filters.category.lower()
            )
        if filters.payment_method:
            stmt = stmt.where(
                LedgerEntry.payment_method
                == normalize_method(filters.payment_method)
            )
        if filters.sale_id:
            stmt = stmt.where(LedgerEntry.sale_id == filters.sale_id)
        if filters.due_from:
            stmt = stmt.where(LedgerEntry.due_date >= filters.due_from)
        if filters.due_to:
            stmt = stmt.where(LedgerEntry.due_date <= filters.due_to)
        return stmt

    def query_entries(self, filters: LedgerEntryFilters) -> list[LedgerEntry]:
        """Return matching entries, latest due date first."""
        stmt = (
            self._filtered(filters)
            .order_by(
                LedgerEntry.due_date.desc(),
                LedgerEntry.installment_number.desc(),
            )
            .limit(filters.limit)
            .offset(filters.offset)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_entries(self, filters: LedgerEntryFilters) -> int:
        stmt = select(func.count()).select_from(
            self._filtered(filters).subquery()
        )
        return self.db.execute(stmt).scalar_one()

    def get_sale_installments(self, sale_id: uuid.UUID) -> list[LedgerEntry]:
        """Return the installments of a sale in installment order."""
        entries = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.sale_id == sale_id,
                LedgerEntry.source_kind == SourceKind.INSTALLMENT,
            )
            .order_by(LedgerEntry.installment_number)
        ).scalars().all()
        return list(entries)
