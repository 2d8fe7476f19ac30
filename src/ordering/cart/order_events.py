"""The buyer's cart is emptied once their order has been placed."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.order.events import OrderPlaced

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Cart, stream_category="ordering::order")
class OrderCartEventHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_user(event.user_id)
        if cart is None or not cart.items:
            return

        cart.clear()
        repo.add(cart)
        logger.info("Cart cleared after order placement", user_id=str(event.user_id), order_id=str(event.order_id))
