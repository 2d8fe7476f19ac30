"""Flat order rows: one row per (order, item), the denormalized read view.

Orders with no items still get a single header row whose ``order_item_id``
is empty, so they never disappear from listings. Customer and admin screens
read these rows and fold them back into nested orders with ``group_orders``.
"""

import json
import uuid

from protean.core.projector import on
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.order import Order


@ordering.projection
class OrderItemRow:
    row_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    order_number = String(max_length=30)
    user_id = Identifier(required=True)
    status = String(max_length=20)
    payment_status = String(max_length=20)
    total_amount = Float()
    shipping_cost = Float()
    tax_amount = Float()
    discount_amount = Float()
    currency = String(max_length=3)
    shipping_address = Text()  # JSON: address dict
    payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    payment_method = String(max_length=50)
    notes = Text()
    tracking_number = String(max_length=100)
    estimated_delivery = String(max_length=40)  # ISO datetime
    created_at = String(max_length=40)  # ISO datetime
    updated_at = String(max_length=40)  # ISO datetime
    order_item_id = Identifier()
    product_id = Identifier()
    product_name = String(max_length=255)
    size = String(max_length=20)
    quantity = Integer()
    item_price = Float()


def _iso(value):
    return value.isoformat() if value else None


def _repo():
    return current_domain.repository_for(OrderItemRow)


def rows_for_order(order_id) -> list[OrderItemRow]:
    return _repo()._dao.query.filter(order_id=str(order_id)).all().items


def purge_order_rows(order_id) -> int:
    """Delete every read row of an order. Returns the number removed."""
    return _repo()._dao.query.filter(order_id=str(order_id)).delete()


def _as_dicts(rows) -> list[dict]:
    return [row.to_dict() for row in rows]


def rows_for_user(user_id) -> list[dict]:
    """Rows of a buyer's orders, newest order first."""
    rows = _repo()._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items
    return _as_dicts(rows)


def all_rows(status=None) -> list[dict]:
    """Rows of every order (optionally one status), newest order first."""
    query = _repo()._dao.query
    if status:
        query = query.filter(status=status)
    return _as_dicts(query.order_by("-created_at").all().items)


@ordering.projector(projector_for=OrderItemRow, aggregates=[Order])
class OrderItemRowProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        header = {
            "order_id": str(event.order_id),
            "order_number": event.order_number,
            "user_id": str(event.user_id),
            "status": event.status,
            "payment_status": event.payment_status,
            "total_amount": event.total_amount,
            "shipping_cost": event.shipping_cost,
            "tax_amount": event.tax_amount,
            "discount_amount": event.discount_amount,
            "currency": event.currency,
            "shipping_address": event.shipping_address,
            "payment_id": event.payment_id,
            "gateway_order_id": event.gateway_order_id,
            "payment_method": event.payment_method,
            "notes": event.notes,
            "estimated_delivery": _iso(event.estimated_delivery),
            "created_at": _iso(event.placed_at),
            "updated_at": _iso(event.placed_at),
        }

        items = json.loads(event.items) if event.items else []
        if not items:
            _repo().add(OrderItemRow(row_id=str(uuid.uuid4()), **header))
            return

        for item in items:
            _repo().add(
                OrderItemRow(
                    row_id=str(uuid.uuid4()),
                    order_item_id=item["item_id"],
                    product_id=item["product_id"],
                    product_name=item["product_name"],
                    size=item.get("size"),
                    quantity=item["quantity"],
                    item_price=item["price"],
                    **header,
                )
            )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        for row in rows_for_order(event.order_id):
            row.status = event.new_status
            row.updated_at = _iso(event.changed_at)
            _repo().add(row)
