"""Stock ledger: the single authority on whether stock suffices.

Every change is one conditional UPDATE executed by the database, never a
read-modify-write in Python. Two concurrent decrements of the same product
therefore cannot drive stock below zero: the loser's UPDATE matches no row
and reports InsufficientStock without having changed anything.
"""

import structlog
from sqlalchemy import select, update
from sqlalchemy.engine import Engine

from ordering.catalogue.products import products
from ordering.errors import InsufficientStock, ProductNotFound

logger = structlog.get_logger(__name__)


class StockLedger:
    def __init__(self, engine: Engine):
        self._engine = engine

    def available(self, product_id: str) -> int | None:
        """Current stock, or None for an unknown product.

        Advisory only: stock may change before the decrement runs.
        """
        with self._engine.connect() as conn:
            return conn.execute(select(products.c.stock).where(products.c.id == str(product_id))).scalar_one_or_none()

    def decrement(self, product_id: str, quantity: int) -> int:
        """Take ``quantity`` units and return the new stock level."""
        if quantity <= 0:
            raise ValueError(f"Decrement quantity must be positive, got {quantity}")

        with self._engine.begin() as conn:
            result = conn.execute(
                update(products)
                .where(products.c.id == str(product_id), products.c.stock >= quantity)
                .values(stock=products.c.stock - quantity)
            )
            decremented = result.rowcount == 1
            current = conn.execute(select(products.c.stock).where(products.c.id == str(product_id))).scalar_one_or_none()

        if not decremented:
            if current is None:
                raise ProductNotFound(str(product_id))
            logger.warning(
                "Insufficient stock",
                product_id=str(product_id),
                available=current,
                requested=quantity,
            )
            raise InsufficientStock(str(product_id), quantity, current)

        logger.info("Stock decremented", product_id=str(product_id), quantity=quantity, new_stock=current)
        return current

    def restore(self, product_id: str, quantity: int) -> None:
        """Give ``quantity`` units back."""
        if quantity <= 0:
            raise ValueError(f"Restore quantity must be positive, got {quantity}")

        with self._engine.begin() as conn:
            result = conn.execute(
                update(products)
                .where(products.c.id == str(product_id))
                .values(stock=products.c.stock + quantity)
            )
            restored = result.rowcount == 1

        if not restored:
            raise ProductNotFound(str(product_id))

        logger.info("Stock restored", product_id=str(product_id), quantity=quantity)
