"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), kept apart
from the internal Protean commands. Address fields are loosely typed here on
purpose: the domain validates them and answers with field-level messages.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    address_line_1: str | None = None
    address_line_2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = "India"


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    size: str | None = Field(None, max_length=20)
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "3f0c6a7e-5b1d-4c55-9d43-6f0e2f1b7a10",
                    "size": "M",
                    "quantity": 1,
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    # Below 1 removes the line
    new_quantity: int


# ---------------------------------------------------------------------------
# Address Book Request Schemas
# ---------------------------------------------------------------------------
class SaveAddressRequest(AddressSchema):
    is_default: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "full_name": "Ananya Sharma",
                    "phone": "9876543210",
                    "address_line_1": "12 MG Road",
                    "address_line_2": "Near City Mall",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "postal_code": "560001",
                    "country": "India",
                    "is_default": True,
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class BeginCheckoutRequest(BaseModel):
    address_id: str | None = None
    address: AddressSchema | None = None
    notes: str | None = None
    payment_method: str = "razorpay"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "address_id": "b6a1b9d0-2f7e-4a57-8a0c-1f4c3c4d9e21",
                    "notes": "Please gift wrap",
                }
            ]
        }
    }


class PaymentSuccessRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentFailureRequest(BaseModel):
    reason: str = "Payment failed"
    code: str | None = None
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None


class PaymentCancelRequest(BaseModel):
    razorpay_order_id: str | None = None


# ---------------------------------------------------------------------------
# Admin Request Schemas
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str


class AddProductRequest(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0, default=0)


class RestockProductRequest(BaseModel):
    quantity: int = Field(ge=1)


class ResolveCaseRequest(BaseModel):
    resolution_note: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ItemIdResponse(BaseModel):
    item_id: str


class AddressIdResponse(BaseModel):
    address_id: str


class OrderIdResponse(BaseModel):
    order_id: str


class ProductIdResponse(BaseModel):
    product_id: str


class StockLevelResponse(BaseModel):
    product_id: str
    stock_quantity: int


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str


class PaymentRequestResponse(BaseModel):
    key_id: str
    gateway_order_id: str
    amount: float
    currency: str
    receipt: str
    prefill: dict = {}


class CheckoutResultResponse(BaseModel):
    status: str
    message: str
    order_id: str | None = None
    order_number: str | None = None
    payment_id: str | None = None


class TrackingEntryResponse(BaseModel):
    status: str
    message: str
    created_at: str


class NotificationResponse(BaseModel):
    id: str
    notification_type: str
    title: str
    message: str
    action_url: str | None = None
    is_read: bool
    created_at: str
