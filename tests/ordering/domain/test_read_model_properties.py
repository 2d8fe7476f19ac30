"""
Property-based tests for group_orders using Hypothesis.

Properties that hold for any set of rows:
- one order per distinct order id, in first-seen order
- every item row becomes exactly one line of its order
- folding the flattened orders again changes nothing
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from ordering.projections.read_model import group_orders, to_rows

# ============================================================================
# Strategy Definitions
# ============================================================================

order_ids = st.sampled_from(["ord-a", "ord-b", "ord-c", "ord-d"])

item_rows = st.builds(
    lambda order_id, n, quantity, price: {
        "order_id": order_id,
        "order_number": order_id.upper(),
        "status": "confirmed",
        "order_item_id": f"{order_id}-item-{n}",
        "product_id": f"prod-{n}",
        "product_name": f"Product {n}",
        "size": "M",
        "quantity": quantity,
        "item_price": price,
    },
    order_id=order_ids,
    n=st.integers(min_value=0, max_value=10_000),
    quantity=st.integers(min_value=1, max_value=10),
    price=st.floats(min_value=0.0, max_value=50_000.0, allow_nan=False, allow_infinity=False),
)

header_rows = st.builds(lambda order_id: {"order_id": order_id, "order_item_id": None}, order_ids)

row_lists = st.lists(st.one_of(item_rows, header_rows), max_size=40)


def _unique_item_ids(rows):
    seen = set()
    result = []
    for row in rows:
        key = row["order_item_id"]
        if key and key in seen:
            continue
        seen.add(key)
        result.append(row)
    return result


# ============================================================================
# Properties
# ============================================================================


@given(row_lists)
@settings(max_examples=200)
def test_one_order_per_distinct_id_in_first_seen_order(rows):
    first_seen = list(dict.fromkeys(row["order_id"] for row in rows))
    assert [order.id for order in group_orders(rows)] == first_seen


@given(row_lists)
@settings(max_examples=200)
def test_every_item_row_becomes_one_line(rows):
    orders = {order.id: order for order in group_orders(rows)}
    for order_id, order in orders.items():
        expected = [row["order_item_id"] for row in rows if row["order_id"] == order_id and row["order_item_id"]]
        assert [line.id for line in order.items] == expected


@given(row_lists)
@settings(max_examples=200)
def test_refolding_is_stable(rows):
    orders = group_orders(_unique_item_ids(rows))
    assert group_orders(to_rows(orders)) == orders
