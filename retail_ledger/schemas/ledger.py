"""
Pydantic schemas for ledger entry operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
are often different.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from retail_ledger.models.enums import EntryStatus, EntryType, SourceKind


# --- Request Schemas ---

class LedgerEntryCreate(BaseModel):
    """A receivable or payable created directly (not by a sale)."""
    category: str | None = Field(default=None, max_length=100)
    description: str = Field(default="", max_length=255)
    due_date: date | None = None
    person: str = Field(default="", max_length=255)
    value: Decimal
    value_due: Decimal | None = Field(default=None, ge=0)
    paid: bool = False
    status: EntryStatus | None = None
    payment_date: datetime | None = None
    payment_method: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    type: EntryType | None = None


class LedgerEntryUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are
    written; everything omitted keeps its stored value.
    """
    category: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    due_date: date | None = None
    person: str | None = Field(default=None, max_length=255)
    value: Decimal | None = None
    value_due: Decimal | None = Field(default=None, ge=0)
    paid: bool | None = None
    status: EntryStatus | None = None
    payment_date: datetime | None = None
    payment_method: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    type: EntryType | None = None


class LedgerEntryFilters(BaseModel):
    search: str | None = None
    status: EntryStatus | None = None
    month: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    person: str | None = None
    category: str | None = None
    payment_method: str | None = None
    sale_id: uuid.UUID | None = None
    due_from: date | None = None
    due_to: date | None = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


# --- Response Schemas ---

class LedgerEntryResponse(BaseModel):
    id: uuid.UUID
    category: str
    description: str
    due_date: date
    person: str
    value: Decimal
    value_due: Decimal | None
    paid: bool
    status: EntryStatus
    payment_method: str | None
    is_credit_sale: bool
    source_kind: SourceKind
    sale_id: uuid.UUID | None
    installment_number: int | None
    installment_count: int | None
    payment_date: datetime | None
    notes: str | None
    type: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class LedgerEntryListResponse(BaseModel):
    data: list[LedgerEntryResponse]
    total: int
