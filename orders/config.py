"""
Service configuration, built once from Django settings.
"""
from dataclasses import dataclass, field

from django.conf import settings

STORE_BACKENDS = ("database", "memory")


@dataclass(frozen=True)
class ServiceConfig:
    """Everything the order services need to talk to Shopify, Posti and the store."""

    webhook_secret: str = ""
    shopify_shop_url: str = ""
    shopify_admin_token: str = ""
    shopify_api_version: str = "2024-01"
    shopify_timeout: float = 10.0
    carrier_api_url: str = "https://sbxgw.ecosystem.posti.fi"
    carrier_api_token: str = ""
    carrier_timeout: float = 10.0
    carrier_service_point_service: str = "2103"
    carrier_home_delivery_service: str = "2104"
    carrier_sender: dict = field(default_factory=dict)
    pickup_point_shipping_title: str = "Standard - Pickup Point"
    order_store_backend: str = "database"
    order_store_capacity: int = 50
    orders_page_size: int = 50

    def __post_init__(self):
        if self.order_store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"ORDER_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, "
                f"got {self.order_store_backend!r}"
            )
        if self.order_store_capacity < 1:
            raise ValueError("ORDER_STORE_CAPACITY must be a positive integer")

    @classmethod
    def from_settings(cls, source=None):
        source = source or settings
        return cls(
            webhook_secret=source.WEBHOOK_SECRET,
            shopify_shop_url=source.SHOPIFY_SHOP_URL.rstrip("/"),
            shopify_admin_token=source.SHOPIFY_ADMIN_TOKEN,
            shopify_api_version=source.SHOPIFY_API_VERSION,
            shopify_timeout=source.SHOPIFY_TIMEOUT,
            carrier_api_url=source.CARRIER_API_URL.rstrip("/"),
            carrier_api_token=source.CARRIER_API_TOKEN,
            carrier_timeout=source.CARRIER_TIMEOUT,
            carrier_service_point_service=source.CARRIER_SERVICE_POINT_SERVICE,
            carrier_home_delivery_service=source.CARRIER_HOME_DELIVERY_SERVICE,
            carrier_sender=dict(source.CARRIER_SENDER),
            pickup_point_shipping_title=source.PICKUP_POINT_SHIPPING_TITLE,
            order_store_backend=source.ORDER_STORE_BACKEND,
            order_store_capacity=source.ORDER_STORE_CAPACITY,
            orders_page_size=source.ORDERS_PAGE_SIZE,
        )
