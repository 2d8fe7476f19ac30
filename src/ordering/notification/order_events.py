"""Notifications react to order events: one message per placed order or status change.

Delivery failures are logged and dropped; they never affect the order.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification.notification import Notification
from ordering.notification.templates import get_template
from ordering.order.events import OrderPlaced, OrderStatusChanged

logger = structlog.get_logger(__name__)


def notify(user_id, template_name, context) -> Notification | None:
    """Render and store a notification. Returns None if that failed."""
    try:
        content = get_template(template_name).render(context)
        notification = Notification.create(user_id=user_id, **content)
        current_domain.repository_for(Notification).add(notification)
    except Exception as exc:
        logger.error(
            "Notification delivery failed",
            user_id=str(user_id),
            template=template_name,
            order_id=context.get("order_id"),
            error=str(exc),
        )
        return None
    return notification


@ordering.event_handler(part_of=Notification, stream_category="ordering::order")
class OrderNotificationEventHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        notify(
            event.user_id,
            "order_placed",
            {"order_id": str(event.order_id), "order_number": event.order_number},
        )

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        template = "order_cancelled" if event.new_status == "cancelled" else "order_status_update"
        notify(
            event.user_id,
            template,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "new_status": event.new_status,
                "changed_by": event.changed_by,
            },
        )
