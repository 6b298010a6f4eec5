import copy
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from rest_framework.test import APIClient

from orders.carrier.client import CarrierClient
from orders.config import ServiceConfig
from orders.domain import Order
from orders.security import generate_webhook_signature
from orders.services import OrderServices, set_services
from orders.shopify.client import ShopifyClient
from orders.store import InMemoryOrderStore

WEBHOOK_SECRET = "test-webhook-secret"

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

SAMPLE_WEBHOOK = {
    "id": "1001",
    "order_number": "A1",
    "email": "a.b@example.com",
    "source_name": "web",
    "line_items": [
        {
            "product_id": "55",
            "variant_id": 9001,
            "current_quantity": 2,
            "requires_shipping": True,
            "title": "Widget",
        }
    ],
    "shipping_address": {
        "name": "A B",
        "address1": "Mannerheimintie 1",
        "city": "Helsinki",
        "zip": "00100",
        "country_code": "FI",
        "province": "Uusimaa",
    },
    "shipping_lines": [{"title": "Standard - Pickup Point", "code": "PP", "price": "4.90"}],
    "created_at": "2024-05-01T10:00:00+03:00",
}


@pytest.fixture
def webhook_payload():
    return copy.deepcopy(SAMPLE_WEBHOOK)


@pytest.fixture
def service_config():
    return ServiceConfig(
        webhook_secret=WEBHOOK_SECRET,
        shopify_shop_url="https://example-store.myshopify.com",
        shopify_admin_token="shpat_test",
        carrier_api_token="posti-test-token",
        carrier_sender={
            "name": "Example Store Oy",
            "address1": "Tehtaankatu 2",
            "postcode": "00140",
            "city": "Helsinki",
            "country_code": "FI",
            "phone": "+358401234567",
            "email": "warehouse@example.com",
        },
        order_store_backend="memory",
    )


@pytest.fixture
def memory_store():
    return InMemoryOrderStore(capacity=50)


@pytest.fixture
def shopify():
    client = MagicMock(spec=ShopifyClient)
    # empty catalog unless a test says otherwise
    client.fetch_products.side_effect = lambda ids: {gid: None for gid in ids}
    return client


@pytest.fixture
def carrier():
    return MagicMock(spec=CarrierClient)


@pytest.fixture
def services(service_config, memory_store, shopify, carrier):
    services = OrderServices(service_config, store=memory_store, shopify=shopify, carrier=carrier)
    set_services(services)
    yield services
    set_services(None)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def post_webhook(api_client):
    """POST a payload to the webhook endpoint, signed with the test secret by default."""

    def post(payload, secret=WEBHOOK_SECRET, header="HTTP_X_SIGNATURE", signature=None):
        body = json.dumps(payload).encode("utf-8")
        headers = {}
        if signature is None and secret:
            signature = generate_webhook_signature(body, secret)
        if signature is not None:
            headers[header] = signature
        return api_client.post("/webhook/orders", data=body, content_type="application/json", **headers)

    return post


@pytest.fixture
def make_order():
    """Order factory; `offset` seconds after a fixed base time decides recency."""

    def make(external_id, offset=0, **fields):
        fields.setdefault("order_number", f"#{external_id}")
        fields.setdefault("created_at", BASE_TIME + timedelta(seconds=offset))
        return Order(external_id=str(external_id), **fields)

    return make
