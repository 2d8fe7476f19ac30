"""Ordering bounded context: carts, checkout, orders and their fulfillment.

Orders are committed only after a verified payment. Everything that reacts to
an order being placed or changing status (stock, notifications, cart
clearing, read rows) hangs off domain events raised by the Order aggregate.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
