"""
Posti carrier API client: pickup-point search and shipment (label) orders.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from orders.exceptions import CarrierError, UpstreamError

logger = logging.getLogger(__name__)

FIND_BY_ADDRESS_PATH = "/location/v3/find-by-address"
SHIPPING_ORDER_PATH = "/ecommerce/v3/orders"


@dataclass
class ShipmentResult:
    shipment_id: Optional[str]
    tracking_number: Optional[str]
    label_url: Optional[str] = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_response(cls, body):
        parcels = body.get("parcels") or [{}]
        if not isinstance(parcels, list) or not isinstance(parcels[0], dict):
            raise UpstreamError("Unexpected carrier response", payload=body)
        return cls(
            shipment_id=body.get("id") or body.get("orderId"),
            tracking_number=body.get("trackingNumber") or parcels[0].get("trackingNumber"),
            label_url=body.get("labelUrl") or body.get("documentUrl"),
            raw=body,
        )


def _error_message(body, status_code):
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        errors = body.get("errors")
        if errors and isinstance(errors, list) and isinstance(errors[0], dict):
            return str(errors[0].get("message") or errors[0])
    return f"Carrier API returned {status_code}"


class CarrierClient:
    def __init__(self, base_url, api_token, timeout=10.0, transport=None):
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Accept-Language": "en",
                "Authorization": f"Bearer {api_token}",
            },
        )

    @classmethod
    def from_config(cls, config):
        return cls(config.carrier_api_url, config.carrier_api_token, timeout=config.carrier_timeout)

    def close(self):
        self.client.close()

    def _request(self, method, path, **kwargs):
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Carrier {method} {path} timed out: {e}")
            raise UpstreamError("Carrier API timed out")
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling carrier {method} {path}: {e}")
            raise UpstreamError(f"Error requesting carrier API: {e.__class__.__name__}")

        try:
            body = response.json()
        except ValueError:
            body = response.text[:500]

        if response.is_error:
            logger.warning(f"Carrier {method} {path} returned {response.status_code}: {body}")
            raise CarrierError(
                response.status_code,
                _error_message(body, response.status_code),
                payload=body,
            )

        if not isinstance(body, (dict, list)):
            raise UpstreamError("Carrier API returned invalid JSON")
        return body

    def find_pickup_points(self, street_address, postcode, locality="", country_code="FI", limit=1):
        params = {
            "streetAddress": street_address,
            "postcode": postcode,
            "locality": locality or "",
            "countryCode": country_code or "FI",
            "limit": str(limit),
        }
        return self._request("GET", FIND_BY_ADDRESS_PATH, params=params)

    def create_shipment(self, payload):
        """Submit a shipping order. Not retried: a resubmission may create a second shipment."""
        body = self._request("POST", SHIPPING_ORDER_PATH, json=payload)
        if not isinstance(body, dict):
            raise UpstreamError("Unexpected carrier response", payload=body)
        return ShipmentResult.from_response(body)
