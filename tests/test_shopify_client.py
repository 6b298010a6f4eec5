from unittest.mock import MagicMock

import pytest
import requests

from orders.exceptions import UpstreamError
from orders.shopify.client import ShopifyClient

GID_55 = "gid://shopify/Product/55"
GID_56 = "gid://shopify/Product/56"


def make_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = body if body is not None else {}
    response.text = str(body)
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return ShopifyClient("example-store.myshopify.com", "shpat_test", api_version="2024-01", timeout=5, session=session)


def test_client_requires_credentials():
    with pytest.raises(ValueError):
        ShopifyClient("", "token")
    with pytest.raises(ValueError):
        ShopifyClient("example-store.myshopify.com", "")


def test_session_is_authenticated(client, session):
    assert client.base_url == "https://example-store.myshopify.com/admin/api/2024-01"
    assert session.headers["X-Shopify-Access-Token"] == "shpat_test"


def test_fetch_products_makes_one_batched_query(client, session):
    session.request.return_value = make_response(
        body={
            "data": {
                "nodes": [
                    {
                        "id": GID_55,
                        "title": "Widget",
                        "handle": "widget",
                        "vendor": "Acme",
                        "productType": "Gadget",
                        "featuredImage": {"url": "https://cdn.example.com/w.png", "altText": None},
                    },
                    None,
                ]
            }
        }
    )

    products = client.fetch_products({GID_56, GID_55})

    session.request.assert_called_once()
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "POST"
    assert url == "https://example-store.myshopify.com/admin/api/2024-01/graphql.json"
    assert kwargs["json"]["variables"] == {"ids": [GID_55, GID_56]}
    assert kwargs["timeout"] == 5

    assert products[GID_55] == {
        "id": GID_55,
        "title": "Widget",
        "handle": "widget",
        "vendor": "Acme",
        "product_type": "Gadget",
        "image_url": "https://cdn.example.com/w.png",
    }
    assert products[GID_56] is None


def test_fetch_products_with_no_ids_makes_no_request(client, session):
    assert client.fetch_products(set()) == {}
    session.request.assert_not_called()


def test_graphql_errors_raise_upstream_error(client, session):
    session.request.return_value = make_response(body={"errors": [{"message": "Throttled"}]})

    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_products({GID_55})

    assert excinfo.value.payload == [{"message": "Throttled"}]


def test_http_error_status_raises_upstream_error(client, session):
    session.request.return_value = make_response(401, {"errors": "[API] Invalid API key or access token"})

    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_products({GID_55})

    assert "401" in str(excinfo.value.detail)


def test_network_failure_raises_upstream_error(client, session):
    session.request.side_effect = requests.exceptions.ConnectTimeout("timed out")

    with pytest.raises(UpstreamError):
        client.fetch_products({GID_55})


def test_invalid_json_raises_upstream_error(client, session):
    response = make_response()
    response.json.side_effect = ValueError("no json")
    session.request.return_value = response

    with pytest.raises(UpstreamError):
        client.get_fulfillment_orders("1001")


def test_get_fulfillment_orders(client, session):
    session.request.return_value = make_response(body={"fulfillment_orders": [{"id": 77, "status": "open"}]})

    assert client.get_fulfillment_orders("1001") == [{"id": 77, "status": "open"}]
    method, url = session.request.call_args.args
    assert method == "GET"
    assert url.endswith("/orders/1001/fulfillment_orders.json")


def test_create_fulfillment_sends_gid_and_tracking(client, session):
    session.request.return_value = make_response(
        body={"data": {"fulfillmentCreateV2": {"fulfillment": {"id": "gid://shopify/Fulfillment/1", "status": "SUCCESS"}, "userErrors": []}}}
    )

    result = client.create_fulfillment(77, tracking_number="JJFI123", tracking_company="Posti")

    fulfillment = session.request.call_args.kwargs["json"]["variables"]["fulfillment"]
    assert fulfillment["lineItemsByFulfillmentOrder"] == [{"fulfillmentOrderId": "gid://shopify/FulfillmentOrder/77"}]
    assert fulfillment["trackingInfo"] == {"number": "JJFI123", "company": "Posti"}
    assert result["userErrors"] == []
    assert result["fulfillment"]["status"] == "SUCCESS"


def test_create_fulfillment_without_tracking(client, session):
    session.request.return_value = make_response(
        body={"data": {"fulfillmentCreateV2": {"fulfillment": None, "userErrors": [{"field": ["id"], "message": "bad"}]}}}
    )

    result = client.create_fulfillment("gid://shopify/FulfillmentOrder/5")

    fulfillment = session.request.call_args.kwargs["json"]["variables"]["fulfillment"]
    assert "trackingInfo" not in fulfillment
    assert fulfillment["lineItemsByFulfillmentOrder"][0]["fulfillmentOrderId"] == "gid://shopify/FulfillmentOrder/5"
    assert result["userErrors"] == [{"field": ["id"], "message": "bad"}]


def test_non_object_graphql_body_raises_upstream_error(client, session):
    session.request.return_value = make_response(body=[{"message": "throttled"}])

    with pytest.raises(UpstreamError) as excinfo:
        client.fetch_products({GID_55})

    assert excinfo.value.payload == [{"message": "throttled"}]


def test_non_object_fulfillment_orders_body_raises_upstream_error(client, session):
    session.request.return_value = make_response(body=[{"id": 77}])

    with pytest.raises(UpstreamError):
        client.get_fulfillment_orders("1001")


def test_create_fulfillment_with_null_payload_raises_upstream_error(client, session):
    session.request.return_value = make_response(body={"data": {"fulfillmentCreateV2": None}})

    with pytest.raises(UpstreamError) as excinfo:
        client.create_fulfillment(77)

    assert excinfo.value.payload == {"fulfillmentCreateV2": None}
