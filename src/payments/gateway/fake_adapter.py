"""Configurable fake payment gateway for development and testing.

Signs and verifies exactly like Razorpay (HMAC-SHA256 over
``order_id|payment_id``) but never leaves the process. It can be configured
at runtime to decline, which makes it useful for:
- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Development without real gateway credentials

``simulate_checkout`` stands in for the customer completing (or dismissing)
the payment widget.
"""

import hmac
from uuid import uuid4

from payments.gateway.port import (
    GatewayOrder,
    PaymentCancelled,
    PaymentFailure,
    PaymentGateway,
    PaymentGatewayError,
    PaymentNotFound,
    PaymentOutcome,
    PaymentStatusResult,
    PaymentSuccess,
    compute_signature,
    validate_order_request,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, key_id: str = "rzp_test_fake", key_secret: str = "fake_secret") -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined by issuer"
        self.calls: list[dict] = []
        self.orders: dict[str, GatewayOrder] = {}
        self.payments: dict[str, PaymentStatusResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Payment declined by issuer") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def sign(self, gateway_order_id: str, payment_id: str) -> str:
        return compute_signature(self.key_secret, gateway_order_id, payment_id)

    def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        validate_order_request(amount, currency)
        self.calls.append(
            {
                "method": "create_order",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            }
        )

        order = GatewayOrder(
            gateway_order_id=f"order_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
            key_id=self.key_id,
        )
        self.orders[order.gateway_order_id] = order
        return order

    def verify_payment(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        self.calls.append(
            {
                "method": "verify_payment",
                "gateway_order_id": gateway_order_id,
                "payment_id": payment_id,
            }
        )
        expected = compute_signature(self.key_secret, gateway_order_id, payment_id)
        return hmac.compare_digest(expected, signature or "")

    def fetch_payment(self, payment_id: str) -> PaymentStatusResult:
        self.calls.append({"method": "fetch_payment", "payment_id": payment_id})
        try:
            return self.payments[payment_id]
        except KeyError:
            raise PaymentNotFound(payment_id) from None

    def simulate_checkout(self, gateway_order_id: str, dismissed: bool = False) -> PaymentOutcome:
        """Play the customer's side of the payment widget for a registered order."""
        order = self.orders.get(gateway_order_id)
        if order is None:
            raise PaymentGatewayError(f"Unknown gateway order {gateway_order_id}", code="BAD_REQUEST_ERROR")

        if dismissed:
            return PaymentCancelled(gateway_order_id=gateway_order_id)

        payment_id = f"pay_{uuid4().hex[:14]}"
        status = "captured" if self.should_succeed else "failed"
        self.payments[payment_id] = PaymentStatusResult(
            payment_id=payment_id,
            status=status,
            amount=order.amount,
            currency=order.currency,
            method="upi",
            gateway_order_id=gateway_order_id,
        )

        if not self.should_succeed:
            return PaymentFailure(
                reason=self.failure_reason,
                code="BAD_REQUEST_ERROR",
                gateway_order_id=gateway_order_id,
                payment_id=payment_id,
            )
        return PaymentSuccess(
            payment_id=payment_id,
            gateway_order_id=gateway_order_id,
            signature=self.sign(gateway_order_id, payment_id),
        )
