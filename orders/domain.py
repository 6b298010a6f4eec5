"""
Plain order types shared by the transformer, the stores and the services.

They carry no persistence details so the in-memory and database stores can
hand back the same objects.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ShippingMethod(str, Enum):
    SERVICE_POINT = "service_point"
    HOME_DELIVERY = "home_delivery"


@dataclass
class LineItem:
    title: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    requires_shipping: bool = False
    quantity: int = 0
    product: Optional[dict] = None


@dataclass
class ShippingAddress:
    name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country_code: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class ShippingLine:
    title: str = ""
    code: Optional[str] = None
    price: Optional[str] = None


@dataclass
class Dimensions:
    length_cm: float
    width_cm: float
    height_cm: float
    weight_kg: float
    box_count: int = 1

    def __post_init__(self):
        for name in ("length_cm", "width_cm", "height_cm", "weight_kg"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if int(self.box_count) != self.box_count or self.box_count < 1:
            raise ValueError("box_count must be a positive integer")
        self.box_count = int(self.box_count)


@dataclass
class Order:
    external_id: str
    order_number: str = ""
    source_name: Optional[str] = None
    email: Optional[str] = None
    line_items: List[LineItem] = field(default_factory=list)
    total_item_count: int = 0
    shipping_address: Optional[ShippingAddress] = None
    shipping_lines: List[ShippingLine] = field(default_factory=list)
    shipping_method: ShippingMethod = ShippingMethod.HOME_DELIVERY
    shipping_method_overridden: bool = False
    dimensions: Optional[Dimensions] = None
    pickup_point: Optional[dict] = None
    tracking_number: Optional[str] = None
    is_fulfilled: bool = False
    fulfilled_at: Optional[datetime] = None
    source_created_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def copy(self, **changes):
        return replace(self, **changes)


# Fields only the operator workflow (measurements, pickup point, shipping,
# fulfillment) writes. Re-ingesting a webhook leaves them alone.
OPERATOR_FIELDS = (
    "dimensions",
    "pickup_point",
    "tracking_number",
    "is_fulfilled",
    "fulfilled_at",
)

UPDATABLE_FIELDS = OPERATOR_FIELDS + ("shipping_method", "shipping_method_overridden")


def dimensions_from_dict(data):
    if data is None:
        return None
    return Dimensions(
        length_cm=float(data["length_cm"]),
        width_cm=float(data["width_cm"]),
        height_cm=float(data["height_cm"]),
        weight_kg=float(data["weight_kg"]),
        box_count=data.get("box_count", 1),
    )

