"""
Pydantic schemas for the outstanding-credit ("fiado") report.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class OutstandingCredit(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    total_credit_sales: Decimal
    total_paid_immediate: Decimal
    outstanding: Decimal
    outstanding_before_start: Decimal = Decimal("0")
    credit_sales_by_day: dict[str, Decimal] = Field(default_factory=dict)
    paid_immediate_by_day: dict[str, Decimal] = Field(default_factory=dict)
