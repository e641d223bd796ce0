"""
Pydantic schemas for point-of-sale checkout.

A sale's payment is described in one of two shapes:
- legacy: one payment_method plus installments (and an optional
  upfront amount_paid when selling on credit);
- mixed tender: a list of payments that add up to the total,
  where a "prazo" line is the portion sold on credit.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field


class SaleLine(BaseModel):
    product_id: str = Field(min_length=1, max_length=36)
    quantity: int = Field(gt=0)
    product_name: str | None = Field(default=None, max_length=255)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class TenderLine(BaseModel):
    method: str = Field(min_length=1, max_length=50)
    amount: Decimal = Field(ge=0)


class SaleCreate(BaseModel):
    total: Decimal = Field(gt=0)
    subtotal: Decimal | None = Field(default=None, ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    items: list[SaleLine] = Field(min_length=1)
    client_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    created_by: str | None = Field(default=None, max_length=255)

    # Legacy shape
    payment_method: str | None = Field(default=None, max_length=50)
    installments: int = Field(default=1, ge=1, le=120)
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    upfront_method: str | None = Field(default=None, max_length=50)

    # Mixed-tender shape
    payments: list[TenderLine] = Field(default_factory=list)

    first_due_offset_days: int | None = Field(default=None, ge=0)


class SaleResult(BaseModel):
    sale_id: uuid.UUID
    created_entry_ids: list[uuid.UUID]
    created_receipt_ids: list[uuid.UUID]
