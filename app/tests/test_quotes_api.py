import pytest
from datetime import timedelta
from decimal import Decimal

from app.api import quotes
from app.core.config import settings
from app.core.enums import CoveragePolicy, TimeUnit
from app.schemas.pricing import ProductScope

from conftest import CATEGORY_ID, PRODUCT_ID

START = "2024-06-10T09:00:00Z"


def _params(end, start=START, product_id=PRODUCT_ID):
    return {"productId": product_id, "start": start, "end": end}


class FakeRedis:
    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")


@pytest.mark.api
class TestQuoteEndpoint:

    @pytest.mark.asyncio
    async def test_quote(self, api_client):
        response = await api_client.get("/pricing/quote", params=_params("2024-06-12T11:00:00Z"))

        assert response.status_code == 200
        data = response.json()
        assert data["product_id"] == PRODUCT_ID
        assert Decimal(data["duration_hours"]) == Decimal("50")
        assert [(e["unit"], e["quantity"]) for e in data["breakdown"]] == [("day", 2), ("hour", 2)]
        assert Decimal(data["subtotal"]) == Decimal("120")
        assert Decimal(data["deposit"]) == Decimal("200")
        assert Decimal(data["total"]) == Decimal("320")
        assert {r["unit"] for r in data["best_rules"]} == {"hour", "day", "week", "month"}

    @pytest.mark.asyncio
    async def test_empty_window(self, api_client, catalog):
        response = await api_client.get("/pricing/quote", params=_params(START))

        assert response.status_code == 400
        assert "after start" in response.json()["detail"]
        assert catalog.calls == []

    @pytest.mark.asyncio
    async def test_unknown_product(self, api_client):
        response = await api_client.get("/pricing/quote", params=_params("2024-06-11T09:00:00Z", product_id=404))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_pricing_configuration(self, api_client, catalog):
        catalog.rules.clear()

        response = await api_client.get("/pricing/quote", params=_params("2024-06-11T09:00:00Z"))

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_missing_params(self, api_client):
        response = await api_client.get("/pricing/quote", params={"productId": PRODUCT_ID})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_cached_quote_served_without_catalog(self, api_client, catalog, monkeypatch):
        fake = FakeRedis()
        monkeypatch.setattr(quotes, "get_redis", lambda: fake)
        params = _params("2024-06-11T09:00:00Z")

        first = await api_client.get("/pricing/quote", params=params)
        calls_after_first = len(catalog.calls)
        second = await api_client.get("/pricing/quote", params=params)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert len(fake.store) == 1
        assert len(catalog.calls) == calls_after_first

    @pytest.mark.asyncio
    async def test_same_instant_shares_cache_entry(self, api_client, monkeypatch):
        fake = FakeRedis()
        monkeypatch.setattr(quotes, "get_redis", lambda: fake)

        utc = await api_client.get("/pricing/quote", params=_params("2024-06-11T09:00:00Z"))
        shifted = await api_client.get("/pricing/quote", params=_params(
            "2024-06-11T11:00:00+02:00", start="2024-06-10T11:00:00+02:00"
        ))
        naive = await api_client.get("/pricing/quote", params=_params(
            "2024-06-11T09:00:00", start="2024-06-10T09:00:00"
        ))

        assert utc.status_code == shifted.status_code == naive.status_code == 200
        assert len(fake.store) == 1

    @pytest.mark.asyncio
    async def test_cache_failure_ignored(self, api_client, monkeypatch):
        monkeypatch.setattr(quotes, "get_redis", lambda: BrokenRedis())

        response = await api_client.get("/pricing/quote", params=_params("2024-06-12T11:00:00Z"))

        assert response.status_code == 200
        assert Decimal(response.json()["subtotal"]) == Decimal("120")
        assert Decimal(response.json()["total"]) == Decimal("320")

    @pytest.mark.asyncio
    async def test_partial_coverage_rejected(self, api_client, catalog, monkeypatch):
        monkeypatch.setattr(settings, "PARTIAL_COVERAGE_POLICY", CoveragePolicy.REJECT)
        catalog.rules = [rule for rule in catalog.rules if rule.unit != TimeUnit.HOUR]

        response = await api_client.get("/pricing/quote", params=_params("2024-06-12T11:00:00Z"))

        assert response.status_code == 422
        assert "2h" in response.json()["detail"]


@pytest.mark.api
class TestProductRulesEndpoint:

    @pytest.mark.asyncio
    async def test_lists_active_pricelist_rules(self, api_client, catalog, make_rule, now):
        catalog.rules += [
            make_rule(TimeUnit.DAY, 40, scope=ProductScope(product_id=PRODUCT_ID), valid_to=now - timedelta(days=1)),
            make_rule(TimeUnit.DAY, 1, pricelist_active=False),
        ]

        response = await api_client.get(f"/pricing/products/{PRODUCT_ID}/rules")

        assert response.status_code == 200
        data = response.json()
        assert data["category_id"] == CATEGORY_ID
        assert data["category_name"] == "Electronics"
        assert len(data["rules"]) == 5
        expired = next(r for r in data["rules"] if r["source"] == "product")
        assert expired["specificity"] == 3
        assert expired["valid_now"] is False
        assert all(r["valid_now"] for r in data["rules"] if r["source"] == "default")

    @pytest.mark.asyncio
    async def test_unknown_product(self, api_client):
        response = await api_client.get("/pricing/products/404/rules")

        assert response.status_code == 404


@pytest.mark.api
class TestMonitoring:

    @pytest.mark.asyncio
    async def test_health(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_metrics_track_quotes(self, api_client):
        await api_client.get("/pricing/quote", params=_params("2024-06-11T09:00:00Z"))
        response = await api_client.get("/metrics")

        assert response.status_code == 200
        assert "quotes_total" in response.text
        assert "http_requests_total" in response.text
