"""Checkout failures that carry a message fit to show the shopper."""


class CheckoutError(Exception):
    """Base class; ``status_code`` is what the HTTP layer answers with."""

    status_code = 400

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class StagedCheckoutMissing(CheckoutError):
    status_code = 409

    def __init__(self, user_id: str) -> None:
        super().__init__(
            f"No checkout is awaiting payment for user {user_id}",
            user_message="Your checkout session has expired. Please review your order and try again.",
        )
        self.user_id = user_id


class PaymentInitiationFailed(CheckoutError):
    status_code = 502

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Could not start payment: {reason}",
            user_message="We could not start the payment. Please try again in a moment.",
        )
        self.reason = reason


VERIFICATION_FAILED_MESSAGE = "Payment verification failed. Please contact support."


class PaymentVerificationFailure(CheckoutError):
    status_code = 400

    def __init__(self, payment_id: str, gateway_order_id: str) -> None:
        super().__init__(
            f"Signature check failed for payment {payment_id} on {gateway_order_id}",
            user_message=VERIFICATION_FAILED_MESSAGE,
        )
        self.payment_id = payment_id
        self.gateway_order_id = gateway_order_id


class OrderReconciliationRequired(CheckoutError):
    """Payment went through but the order could not be recorded in full."""

    status_code = 500

    def __init__(self, payment_id: str, case_id: str, reason: str) -> None:
        super().__init__(
            f"Order for payment {payment_id} needs reconciliation (case {case_id}): {reason}",
            user_message=(
                "Your payment was successful but we could not finish recording your order. "
                f"Please contact support with payment reference {payment_id}."
            ),
        )
        self.payment_id = payment_id
        self.case_id = case_id
        self.reason = reason
