"""Payment gateway port (abstract interface).

Defines the contract every gateway adapter implements, along with the value
types that cross the boundary. Checkout code only ever talks to this port, so
the fake adapter (dev/test) and the Razorpay adapter (production) are
interchangeable.

A payment attempt ends in exactly one of three outcomes: ``PaymentSuccess``,
``PaymentFailure`` or ``PaymentCancelled``. A dismissed payment widget is a
cancellation, never a failure.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from protean.exceptions import ValidationError

SUPPORTED_CURRENCIES = ("INR",)


class PaymentGatewayError(Exception):
    """The gateway could not be reached or rejected the request."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class PaymentNotFound(PaymentGatewayError):
    """The gateway has no record of the requested payment."""

    def __init__(self, payment_id: str) -> None:
        super().__init__("Payment not found", code="NOT_FOUND")
        self.payment_id = payment_id


@dataclass(frozen=True)
class GatewayOrder:
    """An order registered with the gateway, ready to be paid through the widget."""

    gateway_order_id: str
    amount: float
    currency: str
    receipt: str
    key_id: str
    status: str = "created"


@dataclass(frozen=True)
class PaymentStatusResult:
    """Current state of a payment as reported by the gateway."""

    payment_id: str
    status: str
    amount: float
    currency: str
    method: str | None = None
    gateway_order_id: str | None = None


@dataclass(frozen=True)
class PaymentSuccess:
    payment_id: str
    gateway_order_id: str
    signature: str


@dataclass(frozen=True)
class PaymentFailure:
    reason: str
    code: str | None = None
    gateway_order_id: str | None = None
    payment_id: str | None = None


@dataclass(frozen=True)
class PaymentCancelled:
    gateway_order_id: str | None = None


PaymentOutcome = PaymentSuccess | PaymentFailure | PaymentCancelled


@dataclass(frozen=True)
class PaymentRequest:
    """Everything the client-side payment widget needs to collect a payment."""

    key_id: str
    gateway_order_id: str
    amount: float
    currency: str
    receipt: str
    prefill: dict = field(default_factory=dict)


def compute_signature(secret: str, gateway_order_id: str, payment_id: str) -> str:
    """Hex HMAC-SHA256 of ``"{gateway_order_id}|{payment_id}"`` keyed by ``secret``."""
    message = f"{gateway_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def validate_order_request(amount: float, currency: str) -> None:
    errors = {}
    if amount is None or amount <= 0:
        errors["amount"] = ["Amount must be greater than zero"]
    if currency not in SUPPORTED_CURRENCIES:
        errors["currency"] = [f"Unsupported currency {currency}. Only INR is accepted"]
    if errors:
        raise ValidationError(errors)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    key_id: str

    @abstractmethod
    def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        """Register an order with the gateway so the widget can collect payment."""
        ...

    @abstractmethod
    def verify_payment(
        self,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """Check that a success callback was signed by the gateway."""
        ...

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> PaymentStatusResult:
        """Look up a payment's current status."""
        ...
