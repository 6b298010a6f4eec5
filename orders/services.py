"""
Order workflows: webhook ingestion, shipment requests and fulfillment.

``OrderServices`` wires the store and the API clients together from one
``ServiceConfig``; views get it from ``get_services()``.
"""
import logging
import threading
from dataclasses import asdict, dataclass
from functools import cached_property
from typing import Optional

from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from .carrier.client import CarrierClient
from .config import ServiceConfig
from .domain import Order, ShippingMethod
from .exceptions import FulfillmentRejected, InvalidInput, NoFulfillmentOrder, OrderNotFound, UpstreamError
from .shopify.client import ShopifyClient
from .store import build_order_store
from .transform import build_shipping_method_table, collect_product_ids, transform_order

logger = logging.getLogger(__name__)

REQUIRED_ADDRESS_FIELDS = ("name", "address1", "postcode", "city", "country_code")


class OrderIngestion:
    """Webhook payload -> enriched Order -> store."""

    def __init__(self, store, shopify, method_table, clock=timezone.now):
        self.store = store
        self.shopify = shopify
        self.method_table = method_table
        self.clock = clock

    def ingest(self, payload) -> Order:
        # Enrichment failures propagate: nothing is stored for this webhook
        products = self.shopify.fetch_products(collect_product_ids(payload))
        order = transform_order(payload, products, self.clock(), self.method_table)
        stored = self.store.upsert(order)
        logger.info(
            f"Ingested order {stored.external_id} (#{stored.order_number}): "
            f"{stored.total_item_count} items, {stored.shipping_method.value}"
        )
        return stored


def _party(data):
    return {
        "name": data.get("name"),
        "address1": data.get("address1"),
        "address2": data.get("address2"),
        "postcode": data.get("postcode"),
        "city": data.get("city"),
        "country": data.get("country_code"),
        "phone": data.get("phone"),
        "email": data.get("email"),
    }


def build_shipment_payload(order, service_id, sender):
    """Posti shipping order for ``order``; one parcel entry covering ``box_count`` boxes."""
    dimensions = order.dimensions
    receiver = asdict(order.shipping_address)
    receiver["email"] = order.email

    payload = {
        "reference": order.order_number or order.external_id,
        "sender": _party(sender),
        "receiver": _party(receiver),
        "service": {"id": service_id},
        "parcels": [
            {
                "copies": dimensions.box_count,
                # per box; the carrier wants metres
                "weight": dimensions.weight_kg,
                "length": round(dimensions.length_cm / 100, 3),
                "width": round(dimensions.width_cm / 100, 3),
                "height": round(dimensions.height_cm / 100, 3),
            }
        ],
    }
    if order.pickup_point:
        payload["pickupPoint"] = {
            "id": order.pickup_point.get("id") or order.pickup_point.get("pupCode"),
        }
    return payload


def validate_for_shipment(order):
    """Raise InvalidInput naming every field the carrier request would be missing."""
    missing = {}
    if order.dimensions is None:
        missing["dimensions"] = "required"
    address = order.shipping_address
    for name in REQUIRED_ADDRESS_FIELDS:
        if address is None or not getattr(address, name):
            missing[f"shipping_address.{name}"] = "required"
    if order.shipping_method == ShippingMethod.SERVICE_POINT and not order.pickup_point:
        missing["pickup_point"] = "required for service point delivery"
    if missing:
        raise InvalidInput(f"Order {order.external_id} is not ready to ship", fields=missing)


class ShipmentRequestor:
    def __init__(self, store, carrier, config):
        self.store = store
        self.carrier = carrier
        self.config = config

    def default_service(self, order):
        if order.shipping_method == ShippingMethod.SERVICE_POINT:
            return self.config.carrier_service_point_service
        return self.config.carrier_home_delivery_service

    def request_shipment(self, external_id, service_id=None):
        order = self.store.find_by_external_id(external_id)
        if order is None:
            raise OrderNotFound(external_id)
        validate_for_shipment(order)

        service_id = service_id or self.default_service(order)
        payload = build_shipment_payload(order, service_id, self.config.carrier_sender)

        logger.info(f"Requesting {service_id} shipment for order {external_id}")
        result = self.carrier.create_shipment(payload)
        logger.info(f"Shipment created for order {external_id}: tracking {result.tracking_number}")

        if result.tracking_number:
            self.store.update_fields(external_id, tracking_number=result.tracking_number)
        return result


@dataclass
class FulfillmentResult:
    order: Order
    fulfillment: Optional[dict] = None
    already_fulfilled: bool = False


class FulfillmentNotifier:
    """Marks an order fulfilled in Shopify, then locally. Two calls, no compensation."""

    def __init__(self, store, shopify, tracking_company="Posti", clock=timezone.now):
        self.store = store
        self.shopify = shopify
        self.tracking_company = tracking_company
        self.clock = clock

    def fulfill_order(self, external_id):
        order = self.store.find_by_external_id(external_id)
        if order is None:
            raise OrderNotFound(external_id)
        if order.is_fulfilled:
            logger.info(f"Order {external_id} already fulfilled at {order.fulfilled_at}")
            return FulfillmentResult(order=order, already_fulfilled=True)

        fulfillment_orders = self.shopify.get_fulfillment_orders(external_id)
        if not fulfillment_orders:
            raise NoFulfillmentOrder(f"No fulfillment order found for order {external_id}")

        first = fulfillment_orders[0]
        fulfillment_order_id = first.get("id") if isinstance(first, dict) else None
        if not fulfillment_order_id:
            raise UpstreamError("Shopify returned a fulfillment order without an id", payload=first)

        result = self.shopify.create_fulfillment(
            fulfillment_order_id,
            tracking_number=order.tracking_number,
            tracking_company=self.tracking_company if order.tracking_number else None,
        )

        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.warning(f"Shopify rejected fulfillment of order {external_id}: {user_errors}")
            raise FulfillmentRejected(user_errors)
        if not result.get("fulfillment"):
            logger.error(f"Shopify returned no fulfillment for order {external_id}: {result}")
            raise UpstreamError("Shopify did not confirm the fulfillment", payload=result)

        updated = self.store.update_fields(external_id, is_fulfilled=True, fulfilled_at=self.clock())
        logger.info(f"Order {external_id} fulfilled (fulfillment order {fulfillment_order_id})")
        return FulfillmentResult(order=updated, fulfillment=result.get("fulfillment"))


class OrderServices:
    """
    The store and API clients built from one ServiceConfig.

    The Shopify client and the workflows that need it are built on first
    use, so the local order endpoints work without Shopify credentials.
    """

    def __init__(self, config, store=None, shopify=None, carrier=None):
        self.config = config
        self.store = store or build_order_store(config)
        if shopify is not None:
            self.shopify = shopify
        self.carrier = carrier or CarrierClient.from_config(config)
        self.shipments = ShipmentRequestor(self.store, self.carrier, config)

    @cached_property
    def shopify(self):
        try:
            return ShopifyClient.from_config(self.config)
        except ValueError:
            raise ImproperlyConfigured("SHOPIFY_SHOP_URL and SHOPIFY_ADMIN_TOKEN must be set to call Shopify")

    @cached_property
    def ingestion(self):
        return OrderIngestion(
            self.store,
            self.shopify,
            build_shipping_method_table(self.config.pickup_point_shipping_title),
        )

    @cached_property
    def fulfillment(self):
        return FulfillmentNotifier(self.store, self.shopify)


_services = None
_services_lock = threading.Lock()


def get_services():
    """The process-wide OrderServices, built from Django settings on first use."""
    global _services
    with _services_lock:
        if _services is None:
            _services = OrderServices(ServiceConfig.from_settings())
        return _services


def set_services(services):
    """Replace (or with None, reset) the process-wide services. Used by tests."""
    global _services
    with _services_lock:
        _services = services
