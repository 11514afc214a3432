"""Authoritative price resolution (cache first, then catalogue)."""

from typing import Protocol

import structlog

from ordering.catalogue.price_cache import PriceCache
from ordering.catalogue.products import ProductSnapshot
from ordering.errors import ProductNotFound

logger = structlog.get_logger(__name__)


class Catalogue(Protocol):
    def get_product(self, product_id: str) -> ProductSnapshot | None: ...


class CatalogPriceLookup:
    def __init__(self, catalogue: Catalogue, cache: PriceCache):
        self.catalogue = catalogue
        self.cache = cache

    def price_for(self, product_id: str) -> float:
        """Return the unit price to charge for ``product_id``.

        Raises ProductNotFound when the catalogue has no such product, or
        when its price is not positive (the product cannot be sold).
        """
        cached = self.cache.get(product_id)
        if cached is not None:
            return cached

        product = self.catalogue.get_product(product_id)
        if product is None:
            logger.warning("Product not found during price lookup", product_id=product_id)
            raise ProductNotFound(product_id)
        if product.price <= 0:
            logger.warning("Product has no sellable price", product_id=product_id, price=product.price)
            raise ProductNotFound(product_id)

        self.cache.set(product_id, product.price)
        return product.price
