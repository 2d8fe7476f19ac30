"""Order deletion: removes a finished order together with everything hanging off it."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderItem
from ordering.order.tracking import TrackingEvent
from ordering.projections.order_rows import purge_order_rows

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_actor_may_manage(command.requested_by, is_admin=command.is_admin)
        order.assert_deletable()

        order_id = str(order.id)

        # Children first: lines, then the tracking trail, then the header
        current_domain.repository_for(OrderItem)._dao.query.filter(order_id=order_id).delete()
        current_domain.repository_for(TrackingEvent)._dao.query.filter(order_id=order_id).delete()
        repo._dao.delete(order)
        purge_order_rows(order_id)

        logger.info(
            "Order deleted",
            order_id=order_id,
            status=order.status,
            deleted_by="admin" if command.is_admin else "customer",
        )
        return order_id
