"""
Pydantic schemas for receipts.

Receipt amounts are deliberately not constrained here: a
non-positive amount is a business rule violation (InvalidAmount)
raised by the engine, not a malformed request.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ReceiptCreate(BaseModel):
    amount: Decimal
    method: str | None = Field(default=None, max_length=50)
    note: str | None = None
    created_by: str | None = Field(default=None, max_length=255)


class BulkReceiptItem(ReceiptCreate):
    """One line of a bulk receive: a receipt for a named entry."""
    transaction_id: uuid.UUID


class BulkReceiptRequest(BaseModel):
    items: list[BulkReceiptItem]


class ReceiptResponse(BaseModel):
    id: uuid.UUID
    transaction_id: uuid.UUID
    amount: Decimal
    method: str | None
    note: str | None
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class BulkReceiptItemResult(BaseModel):
    index: int
    transaction_id: uuid.UUID
    ok: bool
    receipt: ReceiptResponse | None = None
    error_code: str | None = None
    error: str | None = None


class BulkReceiptResult(BaseModel):
    atomic: bool
    items: list[BulkReceiptItemResult]

    @property
    def receipts(self) -> list[ReceiptResponse]:
        return [item.receipt for item in self.items if item.receipt is not None]

    @property
    def failed(self) -> list[BulkReceiptItemResult]:
        return [item for item in self.items if not item.ok]


class ReceiptListResponse(BaseModel):
    data: list[ReceiptResponse]
    total: int
