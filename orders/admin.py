from django.contrib import admin
from .models import OrderRecord


@admin.register(OrderRecord)
class OrderRecordAdmin(admin.ModelAdmin):
    """Admin interface for the order ledger."""

    list_display = (
        "external_id",
        "order_number",
        "total_item_count",
        "shipping_method",
        "tracking_number",
        "is_fulfilled",
        "created_at",
    )
    list_filter = ("shipping_method", "is_fulfilled", "created_at")
    search_fields = ("external_id", "order_number", "email", "tracking_number")
    readonly_fields = ("external_id", "created_at", "updated_at", "source_created_at")

    fieldsets = (
        (
            "Order Information",
            {
                "fields": ("external_id", "order_number", "source_name", "email", "source_created_at", "created_at", "updated_at"),
            },
        ),
        (
            "Items",
            {
                "fields": ("line_items", "total_item_count"),
            },
        ),
        (
            "Shipping",
            {
                "fields": (
                    "shipping_address",
                    "shipping_lines",
                    "shipping_method",
                    "shipping_method_overridden",
                    "dimensions",
                    "pickup_point",
                    "tracking_number",
                ),
            },
        ),
        (
            "Fulfillment",
            {
                "fields": ("is_fulfilled", "fulfilled_at"),
            },
        ),
    )
