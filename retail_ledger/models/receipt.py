"""
Receipt model.

A receipt records money actually collected (or paid) against
exactly one ledger entry. Receipts are append-only: never
updated, never moved to another entry, and only deleted when
their entry is deleted.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_ledger.models.base import Base
from retail_ledger.timeutils import now_local_precise


class Receipt(Base):
    __tablename__ = "receipts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("ledger_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    # The method used for this receipt; may differ from the entry's own.
    method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=now_local_precise, index=True
    )

    entry: Mapped["LedgerEntry"] = relationship(back_populates="receipts")

    def __repr__(self) -> str:
        return f"<Receipt {self.amount} {self.method} -> {self.transaction_id}>"
