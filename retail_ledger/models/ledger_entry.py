"""
Ledger entry model.

A ledger entry is money owed to or by the store: a receivable
(positive value) or a payable (negative value). Unlike a
double-entry journal line, an entry carries its own remaining
balance (value_due), which only the reconciliation engine
moves, one receipt at a time.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Integer, Numeric, Text,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_ledger.models.base import Base
from retail_ledger.models.enums import EntryStatus, SourceKind
from retail_ledger.timeutils import now_local


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class LedgerEntry(Base):
    """
    A receivable or payable with a remaining balance.

    Installments produced from one sale are independent rows that
    only share sale_id and a "Parcela i/N" note. Nothing links
    them structurally, so a receipt can only ever reach the one
    entry it names.

    version_id is bumped on every UPDATE and checked in its WHERE
    clause, so two receipts racing on the same entry cannot both
    pass the overpayment check.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    category: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    person: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", index=True
    )
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    # NULL only on rows that predate the receipt log
    value_due: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 2), nullable=True
    )
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[EntryStatus] = mapped_column(
        SAEnum(
            EntryStatus,
            name="entry_status_enum",
            values_callable=_enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=EntryStatus.PENDENTE,
        index=True,
    )
    payment_method: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    is_credit_sale: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    source_kind: Mapped[SourceKind] = mapped_column(
        SAEnum(
            SourceKind,
            name="source_kind_enum",
            values_callable=_enum_values,
            create_constraint=True,
        ),
        nullable=False,
        default=SourceKind.MANUAL,
    )
    sale_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    installment_number: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    installment_count: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    payment_date: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_local
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_local, onupdate=now_local
    )

    receipts: Mapped[list["Receipt"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Receipt.created_at",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def current_due(self) -> Decimal:
        """Remaining balance, treating a never-initialized value_due as the full amount."""
        if self.value_due is None:
            return abs(self.value)
        return self.value_due

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.id} {self.value} "
            f"due={self.value_due} ({self.status.value})>"
        )
