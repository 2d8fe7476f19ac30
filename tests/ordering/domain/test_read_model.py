"""Tests for folding flat order rows into nested orders."""

import json

from ordering.projections.read_model import group_orders, to_rows


def _row(order_id, item_id=None, **fields):
    row = {
        "order_id": order_id,
        "order_number": f"VEW-20240611-{order_id[-6:].upper()}",
        "user_id": "user-001",
        "status": "confirmed",
        "payment_status": "paid",
        "total_amount": 2299.0,
        "shipping_address": json.dumps({"full_name": "Ananya Sharma", "city": "Bengaluru"}),
        "order_item_id": item_id,
    }
    if item_id:
        row.update(product_id="prod-001", product_name="Silk Saree", size="Free", quantity=1, item_price=2200.0)
    row.update(fields)
    return row


class TestGroupOrders:
    def test_empty_input(self):
        assert group_orders([]) == []

    def test_one_order_per_id(self):
        orders = group_orders([_row("ord-aaaaaa", "i1"), _row("ord-aaaaaa", "i2"), _row("ord-bbbbbb", "i3")])
        assert [o.id for o in orders] == ["ord-aaaaaa", "ord-bbbbbb"]
        assert len(orders[0].items) == 2

    def test_first_seen_order_kept_with_interleaving(self):
        rows = [_row("ord-bbbbbb", "i1"), _row("ord-aaaaaa", "i2"), _row("ord-bbbbbb", "i3")]
        orders = group_orders(rows)
        assert [o.id for o in orders] == ["ord-bbbbbb", "ord-aaaaaa"]
        assert [line.id for line in orders[0].items] == ["i1", "i3"]

    def test_header_only_row_keeps_order(self):
        orders = group_orders([_row("ord-aaaaaa")])
        assert len(orders) == 1
        assert orders[0].items == []
        assert orders[0].item_count == 0

    def test_first_row_supplies_header(self):
        rows = [_row("ord-aaaaaa", "i1", status="shipped"), _row("ord-aaaaaa", "i2", status="confirmed")]
        assert group_orders(rows)[0].status == "shipped"

    def test_rows_without_order_id_ignored(self):
        assert group_orders([{"order_item_id": "i1"}, {"order_id": None}]) == []

    def test_address_parsed_from_json(self):
        order = group_orders([_row("ord-aaaaaa", "i1")])[0]
        assert order.shipping_address.full_name == "Ananya Sharma"
        assert order.shipping_address.country == "India"

    def test_address_accepts_dict(self):
        order = group_orders([_row("ord-aaaaaa", shipping_address={"full_name": "Ravi", "country": "Nepal"})])[0]
        assert order.shipping_address.full_name == "Ravi"
        assert order.shipping_address.country == "Nepal"

    def test_bad_address_json_falls_back(self):
        order = group_orders([_row("ord-aaaaaa", shipping_address="{not json")])[0]
        assert order.shipping_address.full_name == ""
        assert order.shipping_address.country == "India"

    def test_defaults_for_missing_header_values(self):
        order = group_orders([{"order_id": "3fa9c2d1-0000-0000-0000-000000000000"}])[0]
        assert order.order_number == "3FA9C2D1"
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.total_amount == 0.0
        assert order.currency == "INR"
        assert order.notes == ""

    def test_line_defaults(self):
        order = group_orders([{"order_id": "ord-1", "order_item_id": "i1", "quantity": "2", "item_price": "450"}])[0]
        line = order.items[0]
        assert line.product_name == "Unknown Product"
        assert line.quantity == 2
        assert line.price == 450.0
        assert line.line_total == 900.0

    def test_unparseable_numbers_become_zero(self):
        order = group_orders([_row("ord-aaaaaa", "i1", total_amount="lots", quantity="two")])[0]
        assert order.total_amount == 0.0
        assert order.items[0].quantity == 0


class TestToRows:
    def test_header_only_order_gets_one_row(self):
        rows = to_rows(group_orders([_row("ord-aaaaaa")]))
        assert len(rows) == 1
        assert rows[0]["order_item_id"] is None

    def test_one_row_per_line(self):
        rows = to_rows(group_orders([_row("ord-aaaaaa", "i1"), _row("ord-aaaaaa", "i2")]))
        assert [r["order_item_id"] for r in rows] == ["i1", "i2"]
        assert all(r["order_id"] == "ord-aaaaaa" for r in rows)
