"""
Inventory gateway — the stock counter the sale orchestrator consumes.

Product management is owned elsewhere; the ledger only needs to
read a product's stock and decrement it without overselling.
"""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from retail_ledger.models.product import Product
from retail_ledger.services.errors import NotFound

logger = logging.getLogger(__name__)


class InventoryGateway(ABC):

    @abstractmethod
    def check_stock(self, product_id: str) -> int:
        """Return the units on hand. Raises NotFound for an unknown product."""

    @abstractmethod
    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        """Take `quantity` units if at least that many remain."""


class SqlInventory(InventoryGateway):
    """Stock kept in the products table of the same database."""

    def __init__(self, db: Session):
        self.db = db

    def check_stock(self, product_id: str) -> int:
        stock = self.db.execute(
            select(Product.stock).where(Product.id == product_id)
        ).scalar_one_or_none()
        if stock is None:
            raise NotFound(f"Product {product_id} not found")
        return stock

    def decrement_if_available(self, product_id: str, quantity: int) -> bool:
        """
        Conditional decrement in a single UPDATE.

        The stock >= quantity guard lives in the WHERE clause, so two
        sales racing for the last unit cannot both succeed: the loser
        matches zero rows.
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "Stock decrement of %d on product %s lost a race",
                quantity, product_id,
            )
            return False
        return True
