"""
Error taxonomy for the order bridge and the DRF exception handler that renders it.

Every error response has the shape ``{"error": <message>, "code": <code>, ...}``.
Unexpected exceptions become a generic 500; the traceback only goes to the log.
"""
import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ShipbridgeError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal_error"

    def extra(self):
        """Additional keys merged into the response body."""
        return {}

    def as_dict(self):
        body = {"error": str(self.detail), "code": self.default_code}
        body.update(self.extra())
        return body


class Unauthorized(ShipbridgeError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    default_code = "unauthorized"

    def as_dict(self):
        # never say which part of the signature check failed
        return {"error": "Unauthorized"}


class InvalidInput(ShipbridgeError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"
    default_code = "invalid_input"

    def __init__(self, detail=None, fields=None):
        super().__init__(detail)
        self.fields = fields or {}

    def extra(self):
        return {"fields": self.fields} if self.fields else {}


class OrderNotFound(ShipbridgeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Order not found"
    default_code = "order_not_found"

    def __init__(self, external_id=None):
        super().__init__(f"Order {external_id} not found" if external_id else None)
        self.external_id = external_id


class ProductNotFound(ShipbridgeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Product not found"
    default_code = "product_not_found"


class UpstreamError(ShipbridgeError):
    """An outbound call to Shopify or the carrier failed. Callers may retry."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service error"
    default_code = "upstream_error"

    def __init__(self, detail=None, payload=None):
        super().__init__(detail)
        self.payload = payload

    def extra(self):
        return {"payload": self.payload} if self.payload is not None else {}


class CarrierError(UpstreamError):
    default_detail = "Carrier rejected the request"
    default_code = "carrier_error"

    def __init__(self, carrier_code, message=None, payload=None):
        super().__init__(message or self.default_detail, payload=payload)
        self.carrier_code = carrier_code

    def extra(self):
        body = super().extra()
        body["carrier_code"] = self.carrier_code
        return body


class NoFulfillmentOrder(ShipbridgeError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Order has no fulfillment order"
    default_code = "no_fulfillment_order"


class FulfillmentRejected(ShipbridgeError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Shopify rejected the fulfillment"
    default_code = "fulfillment_rejected"

    def __init__(self, errors, detail=None):
        super().__init__(detail)
        self.errors = list(errors)

    def extra(self):
        return {"errors": self.errors}


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: render every failure in the shared error shape."""
    if isinstance(exc, ValidationError):
        exc = InvalidInput(fields=exc.detail)
    elif isinstance(exc, Http404):
        exc = NotFound()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.error(
            f"Unhandled error in {getattr(view, '__name__', view.__class__.__name__)}: {exc}",
            exc_info=exc,
        )
        return Response(
            {"error": "Internal server error", "code": "internal_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ShipbridgeError):
        response.data = exc.as_dict()
    else:
        # NotFound, MethodNotAllowed, ParseError and friends
        code = getattr(exc, "default_code", "error")
        detail = getattr(exc, "detail", None) or str(exc) or "Error"
        response.data = {"error": str(detail), "code": code}
    return response
