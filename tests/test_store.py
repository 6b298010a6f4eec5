import threading
from datetime import datetime, timezone

import pytest

from orders.domain import Dimensions, LineItem, ShippingMethod
from orders.exceptions import OrderNotFound
from orders.models import OrderRecord
from orders.store import DatabaseOrderStore, InMemoryOrderStore

FULFILLED_AT = datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "database"])
def store(request):
    if request.param == "database":
        request.getfixturevalue("db")
        return DatabaseOrderStore()
    return InMemoryOrderStore(capacity=50)


def test_upsert_same_id_keeps_one_record_with_latest_fields(store, make_order):
    store.upsert(make_order("1001", order_number="A1", total_item_count=1))
    store.upsert(make_order("1001", offset=5, order_number="A1-updated", total_item_count=3))

    orders = store.list_recent(50)
    assert len(orders) == 1
    assert orders[0].order_number == "A1-updated"
    assert orders[0].total_item_count == 3
    assert store.find_by_external_id("1001").order_number == "A1-updated"


def test_upsert_round_trips_nested_data(store, make_order):
    line = LineItem(title="Widget", product_id="gid://shopify/Product/55", quantity=2, product={"id": "x"})

    stored = store.upsert(make_order("1001", line_items=[line], total_item_count=2))

    assert stored.line_items == [line]
    assert store.find_by_external_id("1001").line_items == [line]


def test_upsert_preserves_operator_fields(store, make_order):
    store.upsert(make_order("1001"))
    store.update_fields(
        "1001",
        dimensions=Dimensions(30, 20, 10, 1.5, 2),
        pickup_point={"id": "PP-1", "name": "K-Market"},
        tracking_number="JJFI123",
        is_fulfilled=True,
        fulfilled_at=FULFILLED_AT,
    )

    store.upsert(make_order("1001", offset=10, order_number="A1-v2"))

    order = store.find_by_external_id("1001")
    assert order.order_number == "A1-v2"
    assert order.dimensions == Dimensions(30, 20, 10, 1.5, 2)
    assert order.pickup_point == {"id": "PP-1", "name": "K-Market"}
    assert order.tracking_number == "JJFI123"
    assert order.is_fulfilled is True
    assert order.fulfilled_at == FULFILLED_AT


def test_operator_shipping_method_survives_reingestion(store, make_order):
    store.upsert(make_order("1001", shipping_method=ShippingMethod.SERVICE_POINT))
    store.update_fields("1001", shipping_method="home_delivery")

    store.upsert(make_order("1001", offset=1, shipping_method=ShippingMethod.SERVICE_POINT))

    order = store.find_by_external_id("1001")
    assert order.shipping_method == ShippingMethod.HOME_DELIVERY
    assert order.shipping_method_overridden is True


def test_inferred_shipping_method_follows_webhook(store, make_order):
    store.upsert(make_order("1001", shipping_method=ShippingMethod.HOME_DELIVERY))
    store.upsert(make_order("1001", offset=1, shipping_method=ShippingMethod.SERVICE_POINT))

    assert store.find_by_external_id("1001").shipping_method == ShippingMethod.SERVICE_POINT


def test_update_unknown_order_raises_and_creates_nothing(store):
    with pytest.raises(OrderNotFound):
        store.update_fields("missing", pickup_point={"id": "PP-1"})

    assert store.find_by_external_id("missing") is None
    assert store.list_recent(50) == []


def test_update_rejects_webhook_owned_fields(store, make_order):
    store.upsert(make_order("1001"))

    with pytest.raises(ValueError):
        store.update_fields("1001", order_number="hacked")


def test_update_fields_changes_only_given_fields(store, make_order):
    store.upsert(make_order("1001", order_number="A1", total_item_count=4))

    updated = store.update_fields("1001", pickup_point={"id": "PP-9"})

    assert updated.pickup_point == {"id": "PP-9"}
    assert updated.order_number == "A1"
    assert updated.total_item_count == 4
    assert updated.dimensions is None


def test_list_recent_returns_newest_first(store, make_order):
    for i in range(60):
        store.upsert(make_order(f"order-{i}", offset=i))

    orders = store.list_recent(50)

    assert len(orders) == 50
    assert [order.external_id for order in orders] == [f"order-{i}" for i in range(59, 9, -1)]


def test_reingested_order_moves_to_front(store, make_order):
    store.upsert(make_order("a", offset=1))
    store.upsert(make_order("b", offset=2))
    store.upsert(make_order("a", offset=3))

    assert [order.external_id for order in store.list_recent(10)] == ["a", "b"]


def test_memory_store_drops_oldest_past_capacity(make_order):
    store = InMemoryOrderStore(capacity=3)
    for i in range(5):
        store.upsert(make_order(str(i), offset=i))

    assert [order.external_id for order in store.list_recent(10)] == ["4", "3", "2"]
    assert store.find_by_external_id("0") is None


def test_memory_store_hands_out_copies(make_order):
    store = InMemoryOrderStore()
    store.upsert(make_order("1001", order_number="A1"))

    store.find_by_external_id("1001").order_number = "changed"

    assert store.find_by_external_id("1001").order_number == "A1"


def test_memory_store_concurrent_upserts_keep_one_record(make_order):
    store = InMemoryOrderStore()
    barrier = threading.Barrier(8)

    def worker(n):
        barrier.wait()
        store.upsert(make_order("1001", offset=n, order_number=f"v{n}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.list_recent(50)) == 1


@pytest.mark.django_db
def test_database_store_has_single_row_per_external_id(make_order):
    store = DatabaseOrderStore()
    store.upsert(make_order("1001"))
    store.upsert(make_order("1001", offset=1))

    assert OrderRecord.objects.filter(external_id="1001").count() == 1


@pytest.mark.django_db
def test_database_store_retries_concurrent_insert_as_update(make_order, monkeypatch):
    store = DatabaseOrderStore()
    store.upsert(make_order("1001", order_number="A1"))
    store.update_fields("1001", tracking_number="JJFI123")

    # The first lookup misses the row another request has just inserted,
    # so the insert hits the unique constraint.
    select_for_update = OrderRecord.objects.select_for_update
    lookups = []

    def racing_lookup(*args, **kwargs):
        lookups.append(args)
        if len(lookups) == 1:
            return OrderRecord.objects.none()
        return select_for_update(*args, **kwargs)

    monkeypatch.setattr(OrderRecord.objects, "select_for_update", racing_lookup)

    stored = store.upsert(make_order("1001", offset=1, order_number="A1-updated"))

    assert len(lookups) == 2
    assert stored.order_number == "A1-updated"
    assert stored.tracking_number == "JJFI123"
    assert OrderRecord.objects.filter(external_id="1001").count() == 1
    assert OrderRecord.objects.get(external_id="1001").order_number == "A1-updated"
