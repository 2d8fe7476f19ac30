"""Razorpay payment gateway adapter.

Talks to the Razorpay REST API with ``requests``. Amounts are sent in paise
and orders are created with automatic capture. Success callbacks are
verified locally against the key secret; no network call is needed for that.
"""

import hmac

import requests
import structlog

from payments.gateway.port import (
    GatewayOrder,
    PaymentGateway,
    PaymentGatewayError,
    PaymentNotFound,
    PaymentStatusResult,
    compute_signature,
    validate_order_request,
)

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Production gateway adapter backed by the Razorpay Orders and Payments APIs."""

    BASE_URL = "https://api.razorpay.com/v1"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.BASE_URL}{path}"
        try:
            return self.session.request(
                method,
                url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("Razorpay request failed", method=method, path=path, error=str(exc))
            raise PaymentGatewayError(f"Payment gateway unreachable: {exc}") from exc

    @staticmethod
    def _error_from(response: requests.Response) -> PaymentGatewayError:
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        return PaymentGatewayError(
            error.get("description") or f"Payment gateway returned HTTP {response.status_code}",
            code=error.get("code"),
        )

    def create_order(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> GatewayOrder:
        validate_order_request(amount, currency)

        payload = {
            "amount": int(round(amount * 100)),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
            "payment_capture": 1,
        }
        response = self._request("POST", "/orders", json=payload)
        if response.status_code >= 400:
            raise self._error_from(response)

        data = response.json()
        logger.info("Razorpay order created", gateway_order_id=data["id"], receipt=receipt)
        return GatewayOrder(
            gateway_order_id=data["id"],
            amount=data["amount"] / 100,
            currency=data["currency"],
            receipt=data.get("receipt") or receipt,
            key_id=self.key_id,
            status=data.get("status", "created"),
        )

    def verify_payment(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        expected = compute_signature(self.key_secret, gateway_order_id, payment_id)
        return hmac.compare_digest(expected, signature or "")

    def fetch_payment(self, payment_id: str) -> PaymentStatusResult:
        response = self._request("GET", f"/payments/{payment_id}")
        if response.status_code == 404:
            raise PaymentNotFound(payment_id)
        if response.status_code >= 400:
            raise self._error_from(response)

        data = response.json()
        return PaymentStatusResult(
            payment_id=data["id"],
            status=data["status"],
            amount=data["amount"] / 100,
            currency=data["currency"],
            method=data.get("method"),
            gateway_order_id=data.get("order_id"),
        )
