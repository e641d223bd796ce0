"""
Outstanding credit ("fiado") report.

outstanding = credit sold - money actually collected on it

Credit sold comes from the sale headers (credit_amount) plus
manual "Vendas" entries recorded on credit. Installments and
other entries produced by a sale are not counted again: the
header already covers them, and source_kind tells them apart.

Money collected is the sum of receipts on credit-sale entries
taken with an immediate method. A "prazo" receipt only rolls
debt over and never reduces what is outstanding.

The figure is never derived from summed value_due.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from retail_ledger.models.enums import IMMEDIATE_METHODS, SALES_CATEGORY, SourceKind
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.models.receipt import Receipt
from retail_ledger.models.sale import Sale
from retail_ledger.money import money, ZERO
from retail_ledger.schemas.report import OutstandingCredit
from retail_ledger.timeutils import day_key, start_of_day

logger = logging.getLogger(__name__)


class CreditReportService:

    def __init__(self, db: Session):
        self.db = db

    def get_outstanding_credit(
        self, start_date: date | None = None, end_date: date | None = None
    ) -> OutstandingCredit:
        """
        Outstanding customer credit for an optional date range.

        Both bounds are inclusive calendar days. With a start date,
        outstanding_before_start carries what was already owed going
        into the range; with any bound, per-day breakdowns are added.
        """
        if start_date and end_date and start_date > end_date:
            raise ValueError(
                f"start_date {start_date} is after end_date {end_date}"
            )
        # Half-open [lower, upper) on calendar days.
        upper = end_date + timedelta(days=1) if end_date else None

        credit_sales = self._sum_credit_sales(start_date, upper)
        paid_immediate = self._sum_paid_immediate(start_date, upper)

        before_start = ZERO
        if start_date:
            before_start = (
                self._sum_credit_sales(None, start_date)
                - self._sum_paid_immediate(None, start_date)
            )

        report = OutstandingCredit(
            start_date=start_date,
            end_date=end_date,
            total_credit_sales=credit_sales,
            total_paid_immediate=paid_immediate,
            outstanding=credit_sales - paid_immediate,
            outstanding_before_start=before_start,
        )
        if start_date or end_date:
            report.credit_sales_by_day = self._credit_sales_by_day(start_date, upper)
            report.paid_immediate_by_day = self._paid_immediate_by_day(start_date, upper)

        logger.debug(
            "Outstanding credit %s..%s: sold=%s collected=%s",
            start_date, end_date, credit_sales, paid_immediate,
        )
        return report

    # --- Credit sold ---

    def _sale_headers(self, columns, lower, upper):
        stmt = select(*columns).where(Sale.credit_amount > 0)
        if lower:
            stmt = stmt.where(Sale.sale_date >= start_of_day(lower))
        if upper:
            stmt = stmt.where(Sale.sale_date < start_of_day(upper))
        return stmt

    def _manual_credit_entries(self, columns, lower, upper):
        stmt = select(*columns).where(
            LedgerEntry.is_credit_sale.is_(True),
            LedgerEntry.category == SALES_CATEGORY,
            LedgerEntry.source_kind == SourceKind.MANUAL,
        )
        if lower:
            stmt = stmt.where(LedgerEntry.due_date >= lower)
        if upper:
            stmt = stmt.where(LedgerEntry.due_date < upper)
        return stmt

    def _sum_credit_sales(self, lower, upper) -> Decimal:
        from_sales = self.db.execute(self._sale_headers(
            [func.coalesce(func.sum(Sale.credit_amount), 0)], lower, upper
        )).scalar()
        from_entries = self.db.execute(self._manual_credit_entries(
            [func.coalesce(func.sum(LedgerEntry.value), 0)], lower, upper
        )).scalar()
        return money(from_sales) + money(from_entries)

    def _credit_sales_by_day(self, lower, upper) -> dict[str, Decimal]:
        by_day = defaultdict(lambda: ZERO)
        for sale_date, amount in self.db.execute(self._sale_headers(
            [Sale.sale_date, Sale.credit_amount], lower, upper
        )):
            by_day[day_key(sale_date)] += money(amount)
        for due_date, value in self.db.execute(self._manual_credit_entries(
            [LedgerEntry.due_date, LedgerEntry.value], lower, upper
        )):
            by_day[day_key(due_date)] += money(value)
        return dict(sorted(by_day.items()))

    # --- Money collected ---

    def _immediate_receipts(self, columns, lower, upper):
        stmt = (
            select(*columns)
            .join(LedgerEntry, LedgerEntry.id == Receipt.transaction_id)
            .where(
                LedgerEntry.is_credit_sale.is_(True),
                func.lower(Receipt.method).in_(sorted(IMMEDIATE_METHODS)),
            )
        )
        if lower:
            stmt = stmt.where(Receipt.created_at >= start_of_day(lower))
        if upper:
            stmt = stmt.where(Receipt.created_at < start_of_day(upper))
        return stmt

    def _sum_paid_immediate(self, lower, upper) -> Decimal:
        total = self.db.execute(self._immediate_receipts(
            [func.coalesce(func.sum(Receipt.amount), 0)], lower, upper
        )).scalar()
        return money(total)

    def _paid_immediate_by_day(self, lower, upper) -> dict[str, Decimal]:
        by_day = defaultdict(lambda: ZERO)
        for created_at, amount in self.db.execute(self._immediate_receipts(
            [Receipt.created_at, Receipt.amount], lower, upper
        )):
            by_day[day_key(created_at)] += money(amount)
        return dict(sorted(by_day.items()))
