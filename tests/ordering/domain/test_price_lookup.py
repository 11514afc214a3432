"""Tests for cache-then-fetch price resolution."""

import pytest

from ordering.catalogue.lookup import CatalogPriceLookup
from ordering.catalogue.price_cache import PriceCache
from ordering.catalogue.products import ProductSnapshot
from ordering.errors import ProductNotFound


class CountingCatalogue:
    def __init__(self, products):
        self.products = products
        self.calls = 0

    def get_product(self, product_id):
        self.calls += 1
        return self.products.get(product_id)


def _snapshot(product_id, price):
    return ProductSnapshot(product_id=product_id, title=product_id, price=price, stock=10)


class TestCatalogPriceLookup:
    def test_fetches_and_caches_price(self):
        catalogue = CountingCatalogue({"prod-001": _snapshot("prod-001", 10.0)})
        cache = PriceCache()
        lookup = CatalogPriceLookup(catalogue, cache)

        assert lookup.price_for("prod-001") == 10.0
        assert lookup.price_for("prod-001") == 10.0
        assert catalogue.calls == 1
        assert cache.get("prod-001") == 10.0

    def test_unknown_product_raises(self):
        lookup = CatalogPriceLookup(CountingCatalogue({}), PriceCache())
        with pytest.raises(ProductNotFound) as exc_info:
            lookup.price_for("ghost")
        assert exc_info.value.product_id == "ghost"

    def test_non_positive_price_is_not_sellable(self):
        catalogue = CountingCatalogue({"free": _snapshot("free", 0.0)})
        lookup = CatalogPriceLookup(catalogue, PriceCache())
        with pytest.raises(ProductNotFound):
            lookup.price_for("free")

    def test_missing_product_is_not_cached(self):
        catalogue = CountingCatalogue({})
        cache = PriceCache()
        lookup = CatalogPriceLookup(catalogue, cache)
        with pytest.raises(ProductNotFound):
            lookup.price_for("ghost")
        assert len(cache) == 0
