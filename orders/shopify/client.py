import logging

import requests

from orders.exceptions import UpstreamError

logger = logging.getLogger(__name__)

FULFILLMENT_ORDER_GID_PREFIX = "gid://shopify/FulfillmentOrder/"

PRODUCTS_QUERY = """
query ProductsForOrder($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on Product {
      id
      title
      handle
      vendor
      productType
      featuredImage {
        url
        altText
      }
    }
  }
}
"""

FULFILLMENT_CREATE_MUTATION = """
mutation FulfillOrder($fulfillment: FulfillmentV2Input!) {
  fulfillmentCreateV2(fulfillment: $fulfillment) {
    fulfillment {
      id
      status
    }
    userErrors {
      field
      message
    }
  }
}
"""


def _response_payload(response):
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


def product_snapshot(node):
    image = node.get("featuredImage") or {}
    return {
        "id": node["id"],
        "title": node.get("title"),
        "handle": node.get("handle"),
        "vendor": node.get("vendor"),
        "product_type": node.get("productType"),
        "image_url": image.get("url"),
    }


class ShopifyClient:
    def __init__(self, shop_url: str, access_token: str, api_version: str = "2024-01", timeout: float = 10.0, session=None):
        if not shop_url or not access_token:
            raise ValueError('Shop URL and access token are required')
        if not shop_url.startswith(("http://", "https://")):
            shop_url = f'https://{shop_url}'

        self.shop_url = shop_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'X-Shopify-Access-Token': access_token
        })
        self.api_version = api_version
        self.base_url = f'{self.shop_url}/admin/api/{self.api_version}'
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            config.shopify_shop_url,
            config.shopify_admin_token,
            api_version=config.shopify_api_version,
            timeout=config.shopify_timeout,
        )

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        try:
            response = self.session.request(
                method,
                f'{self.base_url}{endpoint}',
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'Shopify {method} {endpoint} failed: {e}')
            raise UpstreamError(f'Error requesting Shopify API: {e.__class__.__name__}')

        if not response.ok:
            logger.error(f'Shopify {method} {endpoint} returned {response.status_code}')
            raise UpstreamError(
                f'Shopify API returned {response.status_code}',
                payload=_response_payload(response),
            )

        try:
            return response.json()
        except ValueError:
            raise UpstreamError('Shopify API returned invalid JSON')

    def graphql(self, query: str, variables: dict = None) -> dict:
        """Run an Admin GraphQL query; top-level errors raise UpstreamError."""
        body = self._request('POST', '/graphql.json', json={'query': query, 'variables': variables or {}})
        if not isinstance(body, dict):
            raise UpstreamError('Shopify API returned an unexpected response', payload=body)
        if body.get('errors'):
            raise UpstreamError('Shopify GraphQL request failed', payload=body['errors'])
        return body.get('data') or {}

    def fetch_products(self, ids) -> dict:
        """
        Look up many products in one query.

        Returns a dict with an entry for every requested gid: the product
        snapshot, or None when Shopify has no such product.
        """
        ids = sorted(set(ids))
        if not ids:
            return {}

        data = self.graphql(PRODUCTS_QUERY, {'ids': ids})
        products = dict.fromkeys(ids)
        for node in data.get('nodes') or []:
            # nodes() returns null for unknown ids and {} for non-product ids
            if node and node.get('id') in products:
                products[node['id']] = product_snapshot(node)

        missing = [gid for gid, snapshot in products.items() if snapshot is None]
        if missing:
            logger.info(f'{len(missing)} of {len(ids)} products not found in Shopify: {missing}')
        return products

    def get_fulfillment_orders(self, order_id: str) -> list:
        body = self._request('GET', f'/orders/{order_id}/fulfillment_orders.json')
        if not isinstance(body, dict):
            raise UpstreamError('Shopify API returned an unexpected response', payload=body)
        return body.get('fulfillment_orders') or []

    def create_fulfillment(self, fulfillment_order_id, tracking_number: str = None, tracking_company: str = None, notify_customer: bool = True) -> dict:
        """Create a fulfillment; returns the mutation payload ({fulfillment, userErrors})."""
        fulfillment_order_id = str(fulfillment_order_id)
        if not fulfillment_order_id.startswith('gid://'):
            fulfillment_order_id = f'{FULFILLMENT_ORDER_GID_PREFIX}{fulfillment_order_id}'

        fulfillment = {
            'lineItemsByFulfillmentOrder': [{'fulfillmentOrderId': fulfillment_order_id}],
            'notifyCustomer': notify_customer,
        }
        if tracking_number:
            fulfillment['trackingInfo'] = {'number': tracking_number, 'company': tracking_company}

        data = self.graphql(FULFILLMENT_CREATE_MUTATION, {'fulfillment': fulfillment})
        payload = data.get('fulfillmentCreateV2')
        if not isinstance(payload, dict):
            logger.error(f'fulfillmentCreateV2 returned no payload for {fulfillment_order_id}')
            raise UpstreamError('Shopify returned no fulfillment result', payload=data)
        return payload
