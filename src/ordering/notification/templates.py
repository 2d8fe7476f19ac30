"""Notification templates, one per kind of order message.

Each template renders a title, message and action link from the event
context. The registry maps template names to classes.
"""


class OrderPlacedTemplate:
    name = "order_placed"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "")
        return {
            "title": "Order Placed Successfully",
            "message": f"Your order {order_number} has been placed successfully.",
            "action_url": f"/orders/{context.get('order_id', '')}",
        }


class OrderCancelledTemplate:
    name = "order_cancelled"

    @staticmethod
    def render(context: dict) -> dict:
        if context.get("changed_by") == "customer":
            title = "Order Cancelled Successfully"
        else:
            title = "Order Cancelled"
        return {
            "title": title,
            "message": (
                f"Your order {context.get('order_number', '')} has been cancelled. "
                "Refund will be processed within 5-7 business days."
            ),
            "action_url": "/orders",
        }


class OrderStatusUpdateTemplate:
    name = "order_status_update"

    _DETAILS = {
        "confirmed": "We have confirmed your order.",
        "processing": "We are getting your order ready.",
        "shipped": "Your order is on its way.",
        "delivered": "Your order has been delivered. We hope you love it!",
    }

    @classmethod
    def render(cls, context: dict) -> dict:
        status = context.get("new_status", "")
        detail = cls._DETAILS.get(status, "")
        return {
            "title": f"Order {status.capitalize()}",
            "message": f"Your order {context.get('order_number', '')} is now {status}. {detail}".strip(),
            "action_url": f"/orders/{context.get('order_id', '')}",
        }


TEMPLATE_REGISTRY: dict[str, type] = {
    OrderPlacedTemplate.name: OrderPlacedTemplate,
    OrderCancelledTemplate.name: OrderCancelledTemplate,
    OrderStatusUpdateTemplate.name: OrderStatusUpdateTemplate,
}


def get_template(name: str):
    """Look up a template class by name."""
    template_cls = TEMPLATE_REGISTRY.get(name)
    if template_cls is None:
        raise ValueError(f"No template registered for notification: {name}")
    return template_cls
