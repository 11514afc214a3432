import pytest
from protean.integrations.pytest import DomainFixture

from ordering.catalogue.price_cache import PriceCache
from ordering.catalogue.products import ProductCatalogue
from ordering.config import CheckoutPolicy
from ordering.order.placement import OrderPlacementService, get_placement_service, reset_placement_service
from ordering.promotions.promotion import RepositoryPromotionEvaluator
from ordering.stock.ledger import StockLedger
from ordering.utils import db


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    db.setup_db(ordering)
    yield bed
    db.drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture
def catalogue_engine(tmp_path):
    """A file-backed SQLite catalogue, so separate connections see the same rows."""
    engine = db.catalogue_engine(f"sqlite:///{tmp_path / 'catalogue.db'}", connect_args={"timeout": 30})
    db.create_catalogue_schema(engine)
    yield engine
    db.drop_catalogue_schema(engine)
    engine.dispose()


@pytest.fixture
def catalogue(catalogue_engine):
    return ProductCatalogue(catalogue_engine)


@pytest.fixture
def ledger(catalogue_engine):
    return StockLedger(catalogue_engine)


@pytest.fixture
def add_product(catalogue):
    def _add(product_id="prod-001", price=10.0, stock=100, title=None):
        return catalogue.add_product(product_id, title or f"Product {product_id}", price, stock)

    return _add


@pytest.fixture
def promotions():
    return RepositoryPromotionEvaluator()


@pytest.fixture
def make_service(catalogue, ledger, promotions):
    def _make(**overrides):
        overrides.setdefault("policy", CheckoutPolicy())
        overrides.setdefault("price_cache", PriceCache())
        return OrderPlacementService(
            catalogue,
            overrides.pop("ledger", ledger),
            overrides.pop("promotions", promotions),
            **overrides,
        )

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def command_service(monkeypatch, catalogue_engine):
    """The placement service behind the command handlers, pointed at the test catalogue."""
    monkeypatch.setenv("CATALOGUE_DATABASE_URI", catalogue_engine.url.render_as_string(hide_password=False))
    reset_placement_service()
    yield get_placement_service()
    reset_placement_service()


@pytest.fixture
def shipping():
    return {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "phone": "+33100000000",
        "address": "1 Rue de la Paix",
        "city": "Paris",
        "postal_code": "75002",
        "country": "FR",
        "accept_terms": True,
    }


@pytest.fixture
def order_request(shipping):
    def _request(items, promo_code=None, total=None, attribution=None):
        return {
            "items": items,
            "shipping": shipping,
            "promo_code": promo_code,
            "total": total,
            "attribution": attribution,
        }

    return _request
