"""Domain events for the Order aggregate.

Events are versioned, immutable facts. Handlers for stock, notifications,
cart clearing and the flat order-row read model all react to these rather
than being called from the checkout path.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A paid order was committed, together with its lines and first tracking entry."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts (with item_id)
    shipping_address = Text(required=True)  # JSON: address dict
    status = String(required=True)
    payment_status = String(required=True)
    total_amount = Float(required=True)
    shipping_cost = Float()
    tax_amount = Float()
    discount_amount = Float()
    currency = String(default="INR")
    payment_id = String()
    gateway_order_id = String()
    payment_method = String()
    notes = Text()
    estimated_delivery = DateTime()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An order moved along the status state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String(required=True)  # customer, admin, system
    tracking_label = String(required=True)
    message = Text(required=True)
    changed_at = DateTime(required=True)
