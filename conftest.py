import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.quotes import get_catalog, get_now
from app.core.enums import TimeUnit
from app.core.exceptions import ProductUnavailableError
from app.main import app
from app.schemas.pricing import DefaultScope, PriceRule, ProductView


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
PRODUCT_ID = 1
CATEGORY_ID = 10

STANDARD_RATES = {
    TimeUnit.HOUR: Decimal("10"),
    TimeUnit.DAY: Decimal("50"),
    TimeUnit.WEEK: Decimal("300"),
    TimeUnit.MONTH: Decimal("1000"),
}


class InMemoryCatalog:
    """Catalog fake that hands back every rule it holds, whatever the scope."""

    def __init__(self, products=None, rules=None):
        self.products = {p.id: p for p in products or []}
        self.rules = list(rules or [])
        self.calls = []

    async def get_product(self, product_id):
        self.calls.append(("get_product", product_id))
        product = self.products.get(product_id)
        if product is None:
            raise ProductUnavailableError(product_id)
        return product

    async def get_applicable_price_rules(self, product_id, category_id):
        self.calls.append(("get_applicable_price_rules", product_id, category_id))
        return list(self.rules)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_rule():
    ids = itertools.count(1)

    def _make_rule(unit, rate, scope=None, **kwargs):
        return PriceRule(
            id=kwargs.pop("id", next(ids)),
            unit=unit,
            rate=Decimal(str(rate)),
            scope=scope or DefaultScope(),
            pricelist_name=kwargs.pop("pricelist_name", "Base Pricing"),
            **kwargs
        )

    return _make_rule


@pytest.fixture
def standard_rules(make_rule):
    return {unit: make_rule(unit, rate) for unit, rate in STANDARD_RATES.items()}


@pytest.fixture
def camera():
    return ProductView(
        id=PRODUCT_ID,
        name="Professional DSLR Camera",
        category_id=CATEGORY_ID,
        category_name="Electronics",
        daily_deposit=Decimal("200"),
    )


@pytest.fixture
def catalog(camera, standard_rules):
    return InMemoryCatalog(products=[camera], rules=list(standard_rules.values()))


@pytest.fixture
def catalog_factory(camera):
    def _catalog(rules=(), products=None):
        return InMemoryCatalog(products=products or [camera], rules=rules)

    return _catalog


@pytest.fixture
async def api_client(catalog, now):
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_now] = lambda: now
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "catalog: marks tests that hit the catalog tables"
    )
    config.addinivalue_line(
        "markers", "api: marks tests that go through the HTTP layer"
    )
