"""Stock reacts to placed orders by decrementing each purchased line.

Stock accuracy ranks below order existence: nothing here can undo an order.
Lines that cannot be applied are logged and handed to reconciliation.
"""

import json

import structlog
from protean.utils.mixins import handle

from ordering.checkout.reconciliation import ReconciliationKind, flag_for_reconciliation
from ordering.domain import ordering
from ordering.order.events import OrderPlaced
from ordering.stock.ledger import StockLedger
from ordering.stock.product import Product
from ordering.utils.settings import setting

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Product, stream_category="ordering::order")
class OrderStockEventHandler:
    """Decrements stock for every line of a newly placed order."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        ledger = StockLedger()
        threshold = setting("LOW_STOCK_THRESHOLD")
        for item in json.loads(event.items):
            try:
                result = ledger.decrement(item["product_id"], item["quantity"], order_id=event.order_id)
            except Exception as exc:
                logger.error(
                    "Stock update failed for placed order",
                    order_id=str(event.order_id),
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    error=str(exc),
                )
                flag_for_reconciliation(
                    ReconciliationKind.STOCK_UPDATE_FAILED.value,
                    order_id=event.order_id,
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    error=str(exc),
                )
                continue

            if result.remaining < threshold:
                logger.info("Product low on stock", product_id=result.product_id, remaining=result.remaining)
