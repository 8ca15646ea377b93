"""Integration tests for the order lookup endpoint.

Covers:
- Retrieve from the store on a cache miss, then back-fill the cache.
- Retrieve straight from the cache (store not consulted).
- 404 for unknown orders; 503 when the store fails on a miss.
- Response shape: nested objects, numeric money, ISO 8601 timestamps.
- Public access (no authentication) and correlation header.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from modules.orders.exceptions import OrderStoreUnavailable
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.integration

UID = "b563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d10"
URL = f"/api/v1/orders/{UID}/"


@pytest.fixture()
def stored_order(make_order):
    order = make_order()
    OrderDjangoRepository().save(order)
    return order


class TestRetrieve:
    def test_miss_reads_store_and_backfills(
        self, api_client, order_cache, stored_order
    ):
        assert UID not in order_cache

        response = api_client.get(URL)

        assert response.status_code == 200
        assert response.json()["order_uid"] == UID
        assert order_cache.get(UID) == stored_order

    def test_hit_does_not_touch_store(self, api_client, order_cache, make_order):
        order_cache.put(make_order())

        with patch.object(OrderDjangoRepository, "get_by_id") as get_by_id:
            response = api_client.get(URL)

        assert response.status_code == 200
        get_by_id.assert_not_called()

    def test_unknown_order_returns_404(self, api_client, order_cache):
        response = api_client.get("/api/v1/orders/does-not-exist/")
        assert response.status_code == 404
        assert response.json() == {"detail": "Order not found."}

    def test_store_failure_returns_503(self, api_client, order_cache):
        with patch.object(
            OrderDjangoRepository,
            "get_by_id",
            side_effect=OrderStoreUnavailable("db down"),
        ):
            response = api_client.get(URL)

        assert response.status_code == 503
        assert response.json() == {"detail": "Order store unavailable."}

    def test_cached_order_served_while_store_down(
        self, api_client, order_cache, make_order
    ):
        order_cache.put(make_order())
        with patch.object(
            OrderDjangoRepository,
            "get_by_id",
            side_effect=OrderStoreUnavailable("db down"),
        ):
            response = api_client.get(URL)

        assert response.status_code == 200


class TestResponseShape:
    def test_payload(self, api_client, order_cache, stored_order):
        data = api_client.get(URL).json()

        assert data["track_number"] == "WBILMTESTTRACK"
        assert data["date_created"] == "2021-11-26T06:22:19Z"
        assert data["delivery"]["phone"] == "97200000000"
        assert data["payment"]["currency"] == "USD"
        assert data["payment"]["amount"] == 1817
        assert isinstance(data["payment"]["amount"], (int, float))
        assert data["items"][0]["chrt_id"] == 9934930
        assert data["items"][0]["sale"] == 30

    def test_public_endpoint_with_correlation_header(
        self, api_client, order_cache, stored_order
    ):
        response = api_client.get(URL, HTTP_X_REQUEST_ID="lookup-1")
        assert response.status_code == 200
        assert response["X-Request-ID"] == "lookup-1"

    def test_write_methods_not_allowed(self, api_client, order_cache):
        response = api_client.delete(URL)
        assert response.status_code == 405
