"""
Shopify order webhook -> Order.

Everything here is pure: no I/O and no clock reads. The ingestion service
fetches product data and passes the current time in.
"""
import logging

from django.utils.dateparse import parse_datetime

from .domain import LineItem, Order, ShippingAddress, ShippingLine, ShippingMethod

logger = logging.getLogger(__name__)

PRODUCT_GID_PREFIX = "gid://shopify/Product/"

DEFAULT_PICKUP_POINT_TITLE = "Standard - Pickup Point"

# Shipping-line title -> method, exact match. Titles not listed are home delivery.
SHIPPING_METHOD_BY_TITLE = {
    DEFAULT_PICKUP_POINT_TITLE: ShippingMethod.SERVICE_POINT,
}

# webhook key -> ShippingAddress field
ADDRESS_FIELDS = {
    "name": "name",
    "address1": "address1",
    "address2": "address2",
    "city": "city",
    "zip": "postcode",
    "country_code": "country_code",
    "phone": "phone",
}


def build_shipping_method_table(pickup_point_title=None):
    """The default table, with ``pickup_point_title`` also mapped to service point."""
    table = dict(SHIPPING_METHOD_BY_TITLE)
    if pickup_point_title:
        table[pickup_point_title] = ShippingMethod.SERVICE_POINT
    return table


def product_gid(product_id):
    """Shopify numeric product id -> GraphQL global id (the enrichment key)."""
    if product_id in (None, ""):
        return None
    product_id = str(product_id)
    if product_id.startswith("gid://"):
        return product_id
    return f"{PRODUCT_GID_PREFIX}{product_id}"


def collect_product_ids(payload):
    """Set of product gids referenced by the payload's line items."""
    ids = set()
    for item in payload.get("line_items") or []:
        gid = product_gid(item.get("product_id"))
        if gid:
            ids.add(gid)
    return ids


def infer_shipping_method(shipping_lines, table=SHIPPING_METHOD_BY_TITLE):
    if not shipping_lines:
        return ShippingMethod.HOME_DELIVERY
    return table.get(shipping_lines[0].title, ShippingMethod.HOME_DELIVERY)


def _quantity(item):
    value = item.get("current_quantity")
    if value is None:
        value = item.get("quantity")
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _optional_str(value):
    return None if value is None else str(value)


def _parse_timestamp(value):
    if not value:
        return None
    try:
        return parse_datetime(str(value))
    except ValueError:
        logger.warning(f"Ignoring unparseable created_at: {value!r}")
        return None


def transform_line_item(item, products):
    gid = product_gid(item.get("product_id"))
    return LineItem(
        title=item.get("title"),
        product_id=gid,
        variant_id=_optional_str(item.get("variant_id")),
        requires_shipping=bool(item.get("requires_shipping", False)),
        quantity=_quantity(item),
        product=products.get(gid) if gid else None,
    )


def transform_address(address):
    if not address:
        return None
    return ShippingAddress(
        **{field: address.get(key) for key, field in ADDRESS_FIELDS.items()}
    )


def transform_shipping_line(line):
    return ShippingLine(
        title=line.get("title") or "",
        code=line.get("code"),
        price=_optional_str(line.get("price")),
    )


def transform_order(payload, products, now, method_table=SHIPPING_METHOD_BY_TITLE):
    """
    Build an Order from a Shopify order webhook payload.

    Args:
        payload: Parsed webhook body; only ``id`` is required
        products: Product gid -> snapshot (or None) from the catalog
        now: Ingestion timestamp, stored as ``created_at``
        method_table: Shipping-line title -> ShippingMethod

    Returns:
        Order: operator-owned fields (dimensions, pickup point, ...) left at defaults
    """
    line_items = [transform_line_item(item, products) for item in payload.get("line_items") or []]
    shipping_lines = [transform_shipping_line(line) for line in payload.get("shipping_lines") or []]

    return Order(
        external_id=str(payload["id"]),
        order_number=_optional_str(payload.get("order_number")) or "",
        source_name=payload.get("source_name"),
        email=payload.get("email"),
        line_items=line_items,
        total_item_count=sum(item.quantity for item in line_items),
        shipping_address=transform_address(payload.get("shipping_address")),
        shipping_lines=shipping_lines,
        shipping_method=infer_shipping_method(shipping_lines, method_table),
        source_created_at=_parse_timestamp(payload.get("created_at")),
        created_at=now,
    )
