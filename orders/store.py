"""
Order ledger.

Callers only see the four ``OrderStore`` operations and ``Order`` objects;
which backend holds the data is a deployment choice (ORDER_STORE_BACKEND).
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict

from django.db import IntegrityError, transaction

from .domain import OPERATOR_FIELDS, UPDATABLE_FIELDS, ShippingMethod
from .exceptions import OrderNotFound
from .models import OrderRecord

logger = logging.getLogger(__name__)


def merge_for_upsert(existing, incoming):
    """
    Webhook data from ``incoming`` with the operator-owned fields of ``existing``.

    An operator-chosen shipping method survives re-ingestion; an inferred one
    is recomputed from the new shipping lines.
    """
    if existing is None:
        return incoming
    kept = {name: getattr(existing, name) for name in OPERATOR_FIELDS}
    if existing.shipping_method_overridden:
        kept["shipping_method"] = existing.shipping_method
        kept["shipping_method_overridden"] = True
    return incoming.copy(**kept)


def clean_update_fields(fields):
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    fields = dict(fields)
    if "shipping_method" in fields:
        fields["shipping_method"] = ShippingMethod(fields["shipping_method"])
        fields.setdefault("shipping_method_overridden", True)
    return fields


class OrderStore(ABC):
    """Orders keyed by Shopify order id. At most one record per id."""

    @abstractmethod
    def upsert(self, order):
        """Insert ``order`` or overwrite the stored one with the same external id."""

    @abstractmethod
    def find_by_external_id(self, external_id):
        """The stored Order, or None."""

    @abstractmethod
    def list_recent(self, limit):
        """Up to ``limit`` orders, most recently ingested first."""

    @abstractmethod
    def update_fields(self, external_id, **fields):
        """Partially update an existing order. Raises OrderNotFound; never creates."""


class InMemoryOrderStore(OrderStore):
    """
    Non-durable store for development and tests.

    Keeps the ``capacity`` most recently ingested orders; older ones are dropped.
    """

    def __init__(self, capacity=50):
        self.capacity = capacity
        self._orders = OrderedDict()
        self._lock = threading.Lock()

    def upsert(self, order):
        with self._lock:
            merged = merge_for_upsert(self._orders.pop(order.external_id, None), order)
            self._orders[order.external_id] = copy.deepcopy(merged)
            while len(self._orders) > self.capacity:
                dropped, _ = self._orders.popitem(last=False)
                logger.debug(f"Dropped order {dropped} from in-memory store")
            return copy.deepcopy(merged)

    def find_by_external_id(self, external_id):
        with self._lock:
            order = self._orders.get(str(external_id))
            return copy.deepcopy(order) if order else None

    def list_recent(self, limit):
        with self._lock:
            newest_first = list(reversed(self._orders.values()))[:limit]
            return copy.deepcopy(newest_first)

    def update_fields(self, external_id, **fields):
        fields = clean_update_fields(fields)
        with self._lock:
            existing = self._orders.get(str(external_id))
            if existing is None:
                raise OrderNotFound(external_id)
            updated = existing.copy(**fields)
            # updates do not count as ingestion; keep the position
            self._orders[str(external_id)] = copy.deepcopy(updated)
            return copy.deepcopy(updated)


class DatabaseOrderStore(OrderStore):
    """Durable store on the Django ORM (``OrderRecord``)."""

    def upsert(self, order):
        try:
            return self._upsert(order)
        except IntegrityError:
            # Another request inserted the same external id between our
            # lookup and insert; the row exists now, so update it.
            logger.warning(f"Concurrent insert for order {order.external_id}, retrying as update")
            return self._upsert(order)

    def _upsert(self, order):
        with transaction.atomic():
            record = (
                OrderRecord.objects.select_for_update()
                .filter(external_id=order.external_id)
                .first()
            )
            merged = merge_for_upsert(record.to_order() if record else None, order)
            values = OrderRecord.field_values(merged)

            if record is None:
                record = OrderRecord.objects.create(external_id=order.external_id, **values)
                logger.info(f"Stored new order {order.external_id}")
            else:
                for name, value in values.items():
                    setattr(record, name, value)
                record.save()
                logger.info(f"Updated order {order.external_id}")

            return record.to_order()

    def find_by_external_id(self, external_id):
        record = OrderRecord.objects.filter(external_id=str(external_id)).first()
        return record.to_order() if record else None

    def list_recent(self, limit):
        records = OrderRecord.objects.order_by("-created_at", "-id")[:limit]
        return [record.to_order() for record in records]

    def update_fields(self, external_id, **fields):
        fields = clean_update_fields(fields)
        with transaction.atomic():
            record = (
                OrderRecord.objects.select_for_update()
                .filter(external_id=str(external_id))
                .first()
            )
            if record is None:
                raise OrderNotFound(external_id)

            updated = record.to_order().copy(**fields)
            values = OrderRecord.field_values(updated)
            changed = [name for name in fields if name in values]
            for name in changed:
                setattr(record, name, values[name])
            record.save(update_fields=changed + ["updated_at"])
            return record.to_order()


def build_order_store(config):
    if config.order_store_backend == "memory":
        logger.warning("Using in-memory order store; orders are lost on restart")
        return InMemoryOrderStore(capacity=config.order_store_capacity)
    return DatabaseOrderStore()
