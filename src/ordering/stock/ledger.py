"""Stock ledger: applies sales to product stock levels without losing updates.

Each decrement is a compare-and-swap. The current level is read, the new one
computed, and the write only lands if the level is still what was read. On
contention the whole read-compute-write is retried. Levels never go below
zero; a sale that asks for more than is left is clamped at zero and opens an
``oversold`` reconciliation case instead of failing, because the buyer has
already paid.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from ordering.checkout.reconciliation import ReconciliationKind, flag_for_reconciliation
from ordering.stock.product import Product
from ordering.utils.settings import setting

logger = structlog.get_logger(__name__)


class StockContention(Exception):
    """The stock level kept changing underneath every attempt."""

    def __init__(self, product_id: str, attempts: int) -> None:
        super().__init__(f"Could not update stock for {product_id} after {attempts} attempts")
        self.product_id = product_id
        self.attempts = attempts


@dataclass(frozen=True)
class StockDecrement:
    product_id: str
    requested: int
    previous: int
    remaining: int
    attempts: int = 1

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.previous, 0)

    @property
    def oversold(self) -> bool:
        return self.shortfall > 0


class StockLedger:
    def __init__(self, max_attempts: int | None = None) -> None:
        self.max_attempts = max_attempts or setting("MAX_STOCK_UPDATE_ATTEMPTS")

    @property
    def _repo(self):
        return current_domain.repository_for(Product)

    def available(self, product_id) -> int:
        return self._current_level(product_id)

    def _current_level(self, product_id) -> int:
        return self._repo.get(str(product_id)).stock_quantity

    def _swap(self, product_id, expected: int, new: int) -> bool:
        updated = self._repo._dao.query.filter(id=str(product_id), stock_quantity=expected).update(
            stock_quantity=new
        )
        return updated == 1

    def decrement(self, product_id, quantity: int, order_id=None) -> StockDecrement:
        """Take ``quantity`` units of a product off the shelf for an order."""
        product_id = str(product_id)
        for attempt in range(1, self.max_attempts + 1):
            current = self._current_level(product_id)
            remaining = max(current - quantity, 0)
            if self._swap(product_id, current, remaining):
                result = StockDecrement(
                    product_id=product_id,
                    requested=quantity,
                    previous=current,
                    remaining=remaining,
                    attempts=attempt,
                )
                if result.oversold:
                    logger.warning(
                        "Stock oversold",
                        product_id=product_id,
                        order_id=str(order_id) if order_id else None,
                        requested=quantity,
                        available=current,
                        shortfall=result.shortfall,
                    )
                    flag_for_reconciliation(
                        ReconciliationKind.OVERSOLD.value,
                        order_id=order_id,
                        product_id=product_id,
                        requested=quantity,
                        available=current,
                        shortfall=result.shortfall,
                    )
                else:
                    logger.info(
                        "Stock decremented",
                        product_id=product_id,
                        order_id=str(order_id) if order_id else None,
                        previous=current,
                        remaining=remaining,
                    )
                return result

            logger.warning(
                "Stock level changed concurrently, retrying",
                product_id=product_id,
                attempt=attempt,
                expected=current,
            )

        raise StockContention(product_id, self.max_attempts)
