import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .domain import Dimensions
from .exceptions import InvalidInput, OrderNotFound, ProductNotFound, Unauthorized
from .security import signature_from_headers, verify_webhook_signature
from .serializers import (
    MeasurementsSerializer,
    OrderReferenceSerializer,
    OrderSerializer,
    PickupPointSearchSerializer,
    PickupPointUpdateSerializer,
    ProductLookupSerializer,
    ShipmentRequestSerializer,
    ShipmentResultSerializer,
    WebhookOrderSerializer,
)
from .services import get_services
from .transform import product_gid

logger = logging.getLogger(__name__)


def _validated(serializer_class, request):
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


@api_view(["GET"])
def health(request):
    return Response({"status": "ok"})


@api_view(["POST"])
def order_webhook(request):
    """
    Receive a Shopify order webhook (orders/create, orders/updated).

    Security:
        - HMAC-SHA256 of the raw body, base64, in X-Signature or X-Shopify-Hmac-Sha256
        - Checked before the body is parsed; failures return 401 and touch nothing

    Returns:
        200 OK: {"ok": true, "order_id": "1001"}
        400 Bad Request: payload is not an order
        401 Unauthorized: {"error": "Unauthorized"}
        502 Bad Gateway: product lookup in Shopify failed, nothing stored
    """
    services = get_services()

    # request.body must be read before request.data
    signature = signature_from_headers(request.headers)
    if not verify_webhook_signature(request.body, signature, services.config.webhook_secret):
        logger.warning(f"Webhook signature verification failed from IP: {request.META.get('REMOTE_ADDR')}")
        raise Unauthorized()

    if not isinstance(request.data, dict):
        raise InvalidInput("Webhook body must be a JSON object")
    _validated(WebhookOrderSerializer, request)

    order = services.ingestion.ingest(request.data)
    return Response({"ok": True, "order_id": order.external_id}, status=status.HTTP_200_OK)


@api_view(["GET"])
def order_list(request):
    """Most recently ingested orders, newest first."""
    services = get_services()
    orders = services.store.list_recent(services.config.orders_page_size)
    return Response(OrderSerializer(orders, many=True).data)


@api_view(["POST"])
def order_lookup(request):
    data = _validated(OrderReferenceSerializer, request)
    order = get_services().store.find_by_external_id(data["orderId"])
    if order is None:
        raise OrderNotFound(data["orderId"])
    return Response(OrderSerializer(order).data)


@api_view(["POST"])
def update_measurements(request):
    """Store parcel dimensions and, optionally, the operator's shipping method."""
    data = _validated(MeasurementsSerializer, request)
    fields = {"dimensions": Dimensions(**data["dimensions"])}
    if data.get("method"):
        fields["shipping_method"] = data["method"]

    order = get_services().store.update_fields(data["orderId"], **fields)
    logger.info(f"Measurements saved for order {order.external_id}")
    return Response({"success": True, "order": OrderSerializer(order).data})


@api_view(["POST"])
def update_pickup_point(request):
    data = _validated(PickupPointUpdateSerializer, request)
    order = get_services().store.update_fields(data["orderId"], pickup_point=data["pickupPoint"])
    logger.info(f"Pickup point saved for order {order.external_id}")
    return Response({"success": True, "order": OrderSerializer(order).data})


@api_view(["POST"])
def request_shipment(request):
    """
    Ask the carrier for a shipment (label) for a measured order.
    Not retried on failure; the operator decides whether to resubmit.
    """
    data = _validated(ShipmentRequestSerializer, request)
    result = get_services().shipments.request_shipment(data["orderId"], data.get("serviceId") or None)
    return Response({"success": True, "shipment": ShipmentResultSerializer(result).data})


@api_view(["POST"])
def fulfill_order(request):
    data = _validated(OrderReferenceSerializer, request)
    result = get_services().fulfillment.fulfill_order(data["orderId"])
    return Response(
        {
            "success": True,
            "already_fulfilled": result.already_fulfilled,
            "fulfillment": result.fulfillment,
            "order": OrderSerializer(result.order).data,
        }
    )


@api_view(["POST"])
def find_pickup_points(request):
    data = _validated(PickupPointSearchSerializer, request)
    locations = get_services().carrier.find_pickup_points(
        data["streetAddress"],
        data["postcode"],
        locality=data["locality"],
        country_code=data["countryCode"],
        limit=data["limit"],
    )
    return Response(locations)


@api_view(["POST"])
def product_lookup(request):
    data = _validated(ProductLookupSerializer, request)
    gid = product_gid(data["productId"])
    products = get_services().shopify.fetch_products({gid})
    if products.get(gid) is None:
        raise ProductNotFound(f"Product {data['productId']} not found")
    return Response(products[gid])
