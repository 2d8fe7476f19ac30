"""Checkout workflow: from cart to a paid order.

``begin_checkout`` validates the cart and address, snapshots live prices
into a pending order, stages it and registers it with the payment gateway.
The shopper then pays in the gateway's widget, which reports back exactly one
outcome. ``complete_checkout`` handles that outcome:

    PaymentCancelled  → slot discarded, nothing else happens
    PaymentFailure    → slot discarded, nothing else happens
    PaymentSuccess    → signature verified, slot consumed, order assembled

An order is only ever written after a verified success, so a cancelled or
failed payment can never leave an order or a stock change behind.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.address.address import Address
from ordering.cart.cart import Cart
from ordering.checkout.assembler import OrderAssembler
from ordering.checkout.errors import (
    VERIFICATION_FAILED_MESSAGE,
    OrderReconciliationRequired,
    PaymentInitiationFailed,
    PaymentVerificationFailure,
    StagedCheckoutMissing,
)
from ordering.checkout.pending_order import AddressSnapshot, PendingOrder, PendingOrderLine
from ordering.checkout.reconciliation import ReconciliationKind, flag_for_reconciliation
from ordering.checkout.staging import CheckoutStaging
from ordering.order.order import Order
from ordering.stock.product import Product
from payments.gateway import get_gateway
from payments.gateway.port import (
    PaymentCancelled,
    PaymentFailure,
    PaymentGateway,
    PaymentGatewayError,
    PaymentOutcome,
    PaymentRequest,
    PaymentSuccess,
)

logger = structlog.get_logger(__name__)


class CheckoutStatus:
    CONFIRMED = "confirmed"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CheckoutResult:
    status: str
    message: str
    order_id: str | None = None
    order_number: str | None = None
    payment_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in (CheckoutStatus.CONFIRMED, CheckoutStatus.DUPLICATE)


class CheckoutWorkflow:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        staging: CheckoutStaging | None = None,
        assembler: OrderAssembler | None = None,
    ) -> None:
        self.gateway = gateway or get_gateway()
        self.staging = staging or CheckoutStaging()
        self.assembler = assembler or OrderAssembler()

    # -------------------------------------------------------------------
    # Phase 1: stage and initiate
    # -------------------------------------------------------------------
    def _address_for(self, user_id, address_id=None, address=None) -> AddressSnapshot:
        if address_id:
            try:
                saved = current_domain.repository_for(Address).get(address_id)
            except ObjectNotFoundError:
                saved = None
            if saved is None or not saved.belongs_to(user_id):
                raise ValidationError({"address_id": ["Please select a delivery address"]})
            return AddressSnapshot.from_dict(saved.snapshot())
        if address:
            return AddressSnapshot.from_dict(address)
        raise ValidationError({"address_id": ["Please select a delivery address"]})

    def _lines_for(self, cart: Cart) -> list[PendingOrderLine]:
        products = current_domain.repository_for(Product)
        lines = []
        for item in cart.items:
            try:
                product = products.get(str(item.product_id))
            except ObjectNotFoundError:
                raise ValidationError({"product_id": [f"Product {item.product_id} is no longer available"]}) from None
            product.assert_can_sell(item.quantity)
            lines.append(
                PendingOrderLine(
                    product_id=str(product.id),
                    product_name=product.name,
                    size=item.size,
                    quantity=item.quantity,
                    price=product.price,
                )
            )
        return lines

    def begin_checkout(
        self,
        user_id,
        address_id=None,
        address=None,
        notes=None,
        payment_method="razorpay",
    ) -> PaymentRequest:
        """Stage the shopper's order and open a payment for it."""
        cart = current_domain.repository_for(Cart).find_by_user(user_id)
        if cart is None or not cart.items:
            raise ValidationError({"cart": ["Your cart is empty"]})

        pending = PendingOrder.build(
            user_id=user_id,
            address=self._address_for(user_id, address_id=address_id, address=address),
            lines=self._lines_for(cart),
            notes=notes,
            payment_method=payment_method,
        )
        self.staging.stage(pending)

        try:
            gateway_order = self.gateway.create_order(
                amount=pending.total_amount,
                currency=pending.currency,
                receipt=pending.reference,
                notes={"user_id": str(user_id)},
            )
        except PaymentGatewayError as exc:
            self.staging.discard(user_id)
            logger.error("Payment initiation failed", user_id=str(user_id), error=exc.message)
            raise PaymentInitiationFailed(exc.message) from exc

        pending = pending.with_gateway_order(gateway_order.gateway_order_id)
        self.staging.stage(pending)

        return PaymentRequest(
            key_id=gateway_order.key_id,
            gateway_order_id=gateway_order.gateway_order_id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            receipt=gateway_order.receipt,
            prefill={"name": pending.address.full_name, "contact": pending.address.phone},
        )

    def pending_checkout(self, user_id) -> PendingOrder:
        pending = self.staging.peek(user_id)
        if pending is None:
            raise StagedCheckoutMissing(str(user_id))
        return pending

    # -------------------------------------------------------------------
    # Phase 2: the widget's outcome
    # -------------------------------------------------------------------
    def complete_checkout(self, user_id, outcome: PaymentOutcome) -> CheckoutResult:
        if isinstance(outcome, PaymentSuccess):
            return self._complete_paid(user_id, outcome)

        self.staging.discard(user_id)

        if isinstance(outcome, PaymentCancelled):
            logger.info("Payment cancelled by shopper", user_id=str(user_id))
            return CheckoutResult(
                status=CheckoutStatus.CANCELLED,
                message="Payment was cancelled. Your cart is saved, so you can try again whenever you are ready.",
            )

        if isinstance(outcome, PaymentFailure):
            logger.warning(
                "Payment failed",
                user_id=str(user_id),
                reason=outcome.reason,
                code=outcome.code,
                payment_id=outcome.payment_id,
            )
            return CheckoutResult(
                status=CheckoutStatus.FAILED,
                message=f"Payment failed: {outcome.reason}. No order was placed; please try again.",
                payment_id=outcome.payment_id,
            )

        raise TypeError(f"Unknown payment outcome {outcome!r}")

    def _verify(self, payment: PaymentSuccess) -> None:
        if not self.gateway.verify_payment(payment.gateway_order_id, payment.payment_id, payment.signature):
            raise PaymentVerificationFailure(payment.payment_id, payment.gateway_order_id)

    def _result_for(self, order: Order, status: str) -> CheckoutResult:
        message = (
            f"Order {order.order_number} placed successfully."
            if status == CheckoutStatus.CONFIRMED
            else f"Order {order.order_number} was already placed for this payment."
        )
        return CheckoutResult(
            status=status,
            message=message,
            order_id=str(order.id),
            order_number=order.order_number,
            payment_id=order.payment_id,
        )

    def _existing_order_result(self, user_id, order: Order) -> CheckoutResult:
        """Answer a callback for a payment that already has an order."""
        if not order.is_owned_by(user_id):
            logger.error(
                "Payment callback for another shopper's order rejected",
                user_id=str(user_id),
                payment_id=order.payment_id,
            )
            return CheckoutResult(
                status=CheckoutStatus.FAILED,
                message=VERIFICATION_FAILED_MESSAGE,
                payment_id=order.payment_id,
            )
        logger.info("Duplicate payment callback ignored", payment_id=order.payment_id)
        return self._result_for(order, CheckoutStatus.DUPLICATE)

    def _complete_paid(self, user_id, payment: PaymentSuccess) -> CheckoutResult:
        orders = current_domain.repository_for(Order)

        try:
            self._verify(payment)
        except PaymentVerificationFailure as exc:
            self.staging.discard(user_id)
            logger.error(
                "Payment signature verification failed",
                user_id=str(user_id),
                payment_id=payment.payment_id,
                gateway_order_id=payment.gateway_order_id,
            )
            return CheckoutResult(status=CheckoutStatus.FAILED, message=exc.user_message, payment_id=payment.payment_id)

        # Replayed callback: the order exists, do nothing more
        existing = orders.find_by_payment_id(payment.payment_id)
        if existing is not None:
            return self._existing_order_result(user_id, existing)

        pending = self.staging.consume(user_id)
        if pending is None:
            # Another request may have consumed the slot and placed the order
            existing = orders.find_by_payment_id(payment.payment_id)
            if existing is not None:
                return self._existing_order_result(user_id, existing)
            self._reconcile_orphan_payment(user_id, payment, "No staged checkout for a verified payment")

        if pending.gateway_order_id != payment.gateway_order_id:
            self._reconcile_orphan_payment(
                user_id,
                payment,
                f"Payment was for gateway order {payment.gateway_order_id}, "
                f"staged checkout was for {pending.gateway_order_id}",
                pending=pending,
            )

        order_id = self.assembler.assemble(pending, payment)
        return self._result_for(orders.get(order_id), CheckoutStatus.CONFIRMED)

    def _reconcile_orphan_payment(self, user_id, payment, reason, pending=None):
        case = flag_for_reconciliation(
            ReconciliationKind.PARTIAL_WRITE.value,
            payment_id=payment.payment_id,
            user_id=str(user_id),
            gateway_order_id=payment.gateway_order_id,
            staged_reference=pending.reference if pending else None,
            reason=reason,
        )
        raise OrderReconciliationRequired(payment.payment_id, str(case.id), reason)
