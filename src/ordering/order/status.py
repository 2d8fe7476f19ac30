"""Order status transitions: admin status updates and customer cancellation.

Each handled command changes the status once and appends exactly one
tracking entry in the same unit of work. The buyer's notification follows
from the ``OrderStatusChanged`` event.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, StatusActor
from ordering.order.tracking import append_tracking

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=20)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status

        label, message = order.change_status(command.new_status, StatusActor.ADMIN)

        repo.add(order)
        append_tracking(order.id, label, message)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
        return order.status

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_actor_may_manage(command.requested_by, is_admin=command.is_admin)

        actor = StatusActor.ADMIN if command.is_admin else StatusActor.CUSTOMER
        label, message = order.cancel(actor)

        repo.add(order)
        append_tracking(order.id, label, message)

        logger.info("Order cancelled", order_id=str(order.id), cancelled_by=actor.value)
        return order.status
