from __future__ import annotations

import copy
import json
from typing import Any, Callable

import pytest

from rest_framework.test import APIClient

from modules.orders.cache import get_order_cache
from modules.orders.dtos import OrderDTO

SAMPLE_ORDER: dict[str, Any] = {
    "order_uid": "b563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d10",
    "track_number": "WBILMTESTTRACK",
    "entry": "WBIL",
    "delivery": {
        "name": "Test Testov",
        "phone": "97200000000",
        "zip": "2639809",
        "city": "Kiryat Mozkin",
        "address": "Ploshad Mira 15",
        "region": "Kraiot",
        "email": "test@gmail.com",
    },
    "payment": {
        "transaction": "b563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d10",
        "request_id": "req-1",
        "currency": "USD",
        "provider": "wbpay",
        "amount": 1817,
        "payment_dt": 1637907727,
        "bank": "alpha",
        "delivery_cost": 1500,
        "goods_total": 317,
        "custom_fee": 0,
    },
    "items": [
        {
            "chrt_id": 9934930,
            "track_number": "WBILMTESTTRACK",
            "price": 453,
            "rid": "ab4219087a764ae0btest",
            "name": "Mascaras",
            "sale": 30,
            "size": "0",
            "total_price": 317,
            "nm_id": 2389212,
            "brand": "Vivienne Sabo",
            "status": 100,
        }
    ],
    "locale": "en",
    "internal_signature": "",
    "customer_id": "test",
    "delivery_service": "meest",
    "shardkey": "9",
    "sm_id": 99,
    "date_created": "2021-11-26T06:22:19Z",
    "oof_shard": "1",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def order_payload() -> Callable[..., dict[str, Any]]:
    """Factory for a valid raw order mapping; keyword args override fields."""

    def _build(**overrides: Any) -> dict[str, Any]:
        payload = copy.deepcopy(SAMPLE_ORDER)
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture()
def order_message(order_payload) -> Callable[..., bytes]:
    """Factory for a JSON-encoded order as it arrives from the stream."""

    def _build(**overrides: Any) -> bytes:
        return json.dumps(order_payload(**overrides)).encode("utf-8")

    return _build


@pytest.fixture()
def make_order(order_payload) -> Callable[..., OrderDTO]:
    """Factory for an ``OrderDTO``; ``uid`` sets ``order_uid``."""

    def _build(uid: str | None = None, **overrides: Any) -> OrderDTO:
        if uid is not None:
            overrides["order_uid"] = uid
        return OrderDTO.model_validate(order_payload(**overrides))

    return _build


@pytest.fixture()
def order_cache():
    """The process-wide order cache, emptied before and after the test."""
    cache = get_order_cache()
    cache.load_all([])
    yield cache
    cache.load_all([])
