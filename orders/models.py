from dataclasses import asdict

from django.db import models
from django.utils import timezone

from .domain import (
    LineItem,
    Order,
    ShippingAddress,
    ShippingLine,
    ShippingMethod,
    dimensions_from_dict,
)


class OrderRecord(models.Model):
    """
    An order received from Shopify, plus the operator's shipping data for it.
    """

    class ShippingMethodChoice(models.TextChoices):
        SERVICE_POINT = ShippingMethod.SERVICE_POINT.value, "Service point"
        HOME_DELIVERY = ShippingMethod.HOME_DELIVERY.value, "Home delivery"

    external_id = models.CharField(
        max_length=255, unique=True, db_index=True, help_text="Order ID from Shopify"
    )
    order_number = models.CharField(max_length=64, blank=True, default="")
    source_name = models.CharField(max_length=64, null=True, blank=True)
    email = models.CharField(max_length=255, null=True, blank=True)
    line_items = models.JSONField(default=list, blank=True)
    total_item_count = models.PositiveIntegerField(default=0)
    shipping_address = models.JSONField(null=True, blank=True)
    shipping_lines = models.JSONField(default=list, blank=True)
    shipping_method = models.CharField(
        max_length=32,
        choices=ShippingMethodChoice.choices,
        default=ShippingMethodChoice.HOME_DELIVERY,
    )
    shipping_method_overridden = models.BooleanField(
        default=False, help_text="Set once an operator chose the shipping method"
    )
    dimensions = models.JSONField(null=True, blank=True, help_text="Parcel measurements")
    pickup_point = models.JSONField(null=True, blank=True, help_text="Carrier pickup location")
    tracking_number = models.CharField(max_length=128, null=True, blank=True)
    is_fulfilled = models.BooleanField(default=False)
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    source_created_at = models.DateTimeField(
        null=True, blank=True, help_text="Creation time reported by Shopify"
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True, help_text="Ingestion time")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"

    def __str__(self):
        return f"Order {self.order_number or self.external_id}"

    @staticmethod
    def field_values(order):
        """Column values for an Order, keyed by model field name."""
        return {
            "order_number": order.order_number,
            "source_name": order.source_name,
            "email": order.email,
            "line_items": [asdict(item) for item in order.line_items],
            "total_item_count": order.total_item_count,
            "shipping_address": asdict(order.shipping_address) if order.shipping_address else None,
            "shipping_lines": [asdict(line) for line in order.shipping_lines],
            "shipping_method": ShippingMethod(order.shipping_method).value,
            "shipping_method_overridden": order.shipping_method_overridden,
            "dimensions": asdict(order.dimensions) if order.dimensions else None,
            "pickup_point": order.pickup_point,
            "tracking_number": order.tracking_number,
            "is_fulfilled": order.is_fulfilled,
            "fulfilled_at": order.fulfilled_at,
            "source_created_at": order.source_created_at,
            "created_at": order.created_at or timezone.now(),
        }

    def to_order(self):
        return Order(
            external_id=self.external_id,
            order_number=self.order_number,
            source_name=self.source_name,
            email=self.email,
            line_items=[LineItem(**item) for item in self.line_items or []],
            total_item_count=self.total_item_count,
            shipping_address=ShippingAddress(**self.shipping_address) if self.shipping_address else None,
            shipping_lines=[ShippingLine(**line) for line in self.shipping_lines or []],
            shipping_method=ShippingMethod(self.shipping_method),
            shipping_method_overridden=self.shipping_method_overridden,
            dimensions=dimensions_from_dict(self.dimensions),
            pickup_point=self.pickup_point,
            tracking_number=self.tracking_number,
            is_fulfilled=self.is_fulfilled,
            fulfilled_at=self.fulfilled_at,
            source_created_at=self.source_created_at,
            created_at=self.created_at,
        )
