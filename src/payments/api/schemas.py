"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer). Field names follow the
payment widget's callback payload so the browser can post it through as-is.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateGatewayOrderRequest(BaseModel):
    amount: float | None = None
    currency: str | None = None
    receipt: str | None = None
    notes: dict = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": 1299.0,
                    "currency": "INR",
                    "receipt": "rcpt_user-001_1718000000",
                    "notes": {"user_id": "user-001"},
                }
            ]
        }
    }


class VerifyPaymentRequest(BaseModel):
    # Optional so that missing fields produce the documented 400 body
    # instead of FastAPI's 422.
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool
    failure_reason: str = "Payment declined by issuer"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class GatewayOrderResponse(BaseModel):
    success: bool = True
    gateway_order_id: str
    amount: float
    currency: str
    receipt: str
    key_id: str
    status: str


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    isValid: bool  # noqa: N815
    message: str


class PaymentStatusResponse(BaseModel):
    success: bool = True
    payment_id: str
    status: str
    amount: float
    currency: str
    method: str | None = None
    gateway_order_id: str | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
