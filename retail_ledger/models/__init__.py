"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from retail_ledger.models.base import Base
from retail_ledger.models.enums import (
    EntryStatus,
    SourceKind,
    EntryType,
)
from retail_ledger.models.ledger_entry import LedgerEntry
from retail_ledger.models.receipt import Receipt
from retail_ledger.models.sale import Sale, SaleItem
from retail_ledger.models.product import Product

__all__ = [
    "Base",
    "EntryStatus",
    "SourceKind",
    "EntryType",
    "LedgerEntry",
    "Receipt",
    "Sale",
    "SaleItem",
    "Product",
]
