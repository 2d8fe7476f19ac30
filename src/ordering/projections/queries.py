"""Order listings for shoppers and admins, all folded through ``group_orders``."""

from ordering.projections.order_rows import all_rows, rows_for_user
from ordering.projections.read_model import OrderView, group_orders


def orders_for_user(user_id) -> list[OrderView]:
    """A shopper's orders, newest first."""
    return group_orders(rows_for_user(user_id))


def all_orders(status=None, search=None) -> list[OrderView]:
    """Every order, newest first, optionally narrowed by status and a search term.

    The search term matches order number, recipient name or payment id,
    case-insensitively.
    """
    orders = group_orders(all_rows(status=status))
    if not search:
        return orders

    term = search.strip().lower()
    return [
        order
        for order in orders
        if term in order.order_number.lower()
        or term in order.shipping_address.full_name.lower()
        or term in order.payment_id.lower()
    ]


def order_for_user(user_id, order_id) -> OrderView | None:
    return next((order for order in orders_for_user(user_id) if order.id == str(order_id)), None)
