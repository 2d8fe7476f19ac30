"""FastAPI routes for the payment gateway boundary.

Failures are reported as ``{"success": false, "error": ...}`` bodies, which
is the shape the storefront client expects from these endpoints.
"""

import os

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from payments.api.schemas import (
    ConfigureGatewayRequest,
    CreateGatewayOrderRequest,
    GatewayConfigResponse,
    GatewayOrderResponse,
    PaymentStatusResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGatewayError, PaymentNotFound

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@payment_router.post("/orders", response_model=GatewayOrderResponse)
async def create_gateway_order(body: CreateGatewayOrderRequest):
    """Register an order with the payment gateway."""
    if body.amount is None or not body.currency or not body.receipt:
        return _failure(400, "Missing required fields: amount, currency, receipt")

    try:
        order = get_gateway().create_order(
            amount=body.amount,
            currency=body.currency,
            receipt=body.receipt,
            notes=body.notes,
        )
    except ValidationError as exc:
        first = next(iter(exc.messages.values()))
        return _failure(400, first[0])
    except PaymentGatewayError as exc:
        logger.error("Gateway order creation failed", receipt=body.receipt, error=exc.message)
        return _failure(502, exc.message)

    return GatewayOrderResponse(
        gateway_order_id=order.gateway_order_id,
        amount=order.amount,
        currency=order.currency,
        receipt=order.receipt,
        key_id=order.key_id,
        status=order.status,
    )


@payment_router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(body: VerifyPaymentRequest):
    """Check a payment widget's success callback signature."""
    if not (body.razorpay_order_id and body.razorpay_payment_id and body.razorpay_signature):
        return _failure(400, "Missing required fields: razorpay_order_id, razorpay_payment_id, razorpay_signature")

    is_valid = get_gateway().verify_payment(
        gateway_order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
    )
    logger.info(
        "Payment verification",
        gateway_order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
        is_valid=is_valid,
    )
    return VerifyPaymentResponse(
        isValid=is_valid,
        message="Payment verified successfully" if is_valid else "Payment verification failed",
    )


@payment_router.get("/{payment_id}/status", response_model=PaymentStatusResponse)
async def payment_status(payment_id: str):
    """Fetch a payment's status from the gateway."""
    try:
        result = get_gateway().fetch_payment(payment_id)
    except PaymentNotFound:
        return _failure(404, "Payment not found")
    except PaymentGatewayError as exc:
        logger.error("Payment status lookup failed", payment_id=payment_id, error=exc.message)
        return _failure(502, exc.message)

    return PaymentStatusResponse(
        payment_id=result.payment_id,
        status=result.status,
        amount=result.amount,
        currency=result.currency,
        method=result.method,
        gateway_order_id=result.gateway_order_id,
    )


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
