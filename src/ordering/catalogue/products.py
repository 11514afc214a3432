"""Catalogue product table and read access.

The catalogue is owned by another team; ordering reads price, stock and
title from it and changes stock only through ``ordering.stock.ledger``.
"""

from dataclasses import dataclass

from sqlalchemy import CheckConstraint, Column, Float, Integer, MetaData, String, Table, insert, select
from sqlalchemy.engine import Engine

catalogue_metadata = MetaData()

products = Table(
    "products",
    catalogue_metadata,
    Column("id", String(64), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("price", Float, nullable=False),
    Column("stock", Integer, nullable=False, default=0),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
)


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: str
    title: str
    price: float
    stock: int


class ProductCatalogue:
    """SQL-backed ``get_product`` collaborator."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(products).where(products.c.id == str(product_id))).first()

        if row is None:
            return None
        return ProductSnapshot(product_id=row.id, title=row.title, price=float(row.price), stock=row.stock)

    def add_product(self, product_id: str, title: str, price: float, stock: int = 0) -> ProductSnapshot:
        with self._engine.begin() as conn:
            conn.execute(insert(products).values(id=str(product_id), title=title, price=price, stock=stock))
        return ProductSnapshot(product_id=str(product_id), title=title, price=price, stock=stock)
