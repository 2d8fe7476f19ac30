"""Order assembly: turns a verified payment plus its pending order into an Order.

``PlaceOrder`` writes the order header, its lines and the first tracking
entry in one unit of work, so either all of them exist or none do. Stock,
notification and cart clearing follow from the ``OrderPlaced`` event and
never hold up or undo the order.

Placing is idempotent on ``payment_id``: a second command for a payment
that already has an order returns the existing order.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.checkout.errors import OrderReconciliationRequired
from ordering.checkout.pending_order import PendingOrder
from ordering.checkout.reconciliation import ReconciliationKind, flag_for_reconciliation
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.tracking import append_tracking
from payments.gateway.port import PaymentSuccess

logger = structlog.get_logger(__name__)

INITIAL_TRACKING_LABEL = "Order Confirmed"
INITIAL_TRACKING_MESSAGE = "Payment received. Your order has been confirmed and will be processed shortly."


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    payment_id = String(required=True, max_length=255)
    gateway_order_id = String(max_length=255)
    payment_method = String(max_length=50)
    lines = Text(required=True)  # JSON: list of line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    shipping_cost = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total_amount = Float(required=True)
    currency = String(max_length=3, default="INR")
    notes = Text()


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        existing = repo.find_by_payment_id(command.payment_id)
        if existing is not None:
            logger.info(
                "Order already exists for payment",
                order_id=str(existing.id),
                payment_id=command.payment_id,
            )
            return str(existing.id)

        order = Order.place(
            user_id=command.user_id,
            lines=json.loads(command.lines),
            shipping_address=json.loads(command.shipping_address),
            total_amount=command.total_amount,
            payment_id=command.payment_id,
            gateway_order_id=command.gateway_order_id,
            payment_method=command.payment_method,
            shipping_cost=command.shipping_cost,
            tax_amount=command.tax_amount,
            discount_amount=command.discount_amount,
            currency=command.currency,
            notes=command.notes,
        )
        repo.add(order)
        append_tracking(order.id, INITIAL_TRACKING_LABEL, INITIAL_TRACKING_MESSAGE)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            payment_id=order.payment_id,
            total_amount=order.total_amount,
        )
        return str(order.id)


class OrderAssembler:
    """Runs ``PlaceOrder`` for a verified payment and owns the commit boundary."""

    def assemble(self, pending: PendingOrder, payment: PaymentSuccess) -> str:
        """Commit the order and return its id.

        Raises ``OrderReconciliationRequired`` if the order could not be
        recorded; the payment has been taken at that point, so the failure
        is flagged for a person to resolve rather than retried blindly.
        """
        command = PlaceOrder(
            user_id=pending.user_id,
            payment_id=payment.payment_id,
            gateway_order_id=payment.gateway_order_id,
            payment_method=pending.payment_method,
            lines=json.dumps(pending.line_dicts()),
            shipping_address=json.dumps(pending.address.to_dict()),
            shipping_cost=pending.shipping_cost,
            tax_amount=pending.tax_amount,
            discount_amount=pending.discount_amount,
            total_amount=pending.total_amount,
            currency=pending.currency,
            notes=pending.notes,
        )

        try:
            return current_domain.process(command, asynchronous=False)
        except Exception as exc:
            # The commit may have landed before a later step blew up
            existing = current_domain.repository_for(Order).find_by_payment_id(payment.payment_id)
            if existing is not None:
                logger.warning(
                    "Order committed despite error during placement",
                    order_id=str(existing.id),
                    payment_id=payment.payment_id,
                    error=str(exc),
                )
                return str(existing.id)

            case = self.flag_partial_write(pending, payment, str(exc))
            raise OrderReconciliationRequired(payment.payment_id, str(case.id), str(exc)) from exc

    @staticmethod
    def flag_partial_write(pending: PendingOrder, payment: PaymentSuccess, reason: str):
        return flag_for_reconciliation(
            ReconciliationKind.PARTIAL_WRITE.value,
            payment_id=payment.payment_id,
            user_id=pending.user_id,
            gateway_order_id=payment.gateway_order_id,
            total_amount=pending.total_amount,
            pending_order=json.loads(pending.to_json()),
            reason=reason,
        )
