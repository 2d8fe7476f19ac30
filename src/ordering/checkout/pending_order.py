"""The pending order: what the shopper is about to pay for.

Built from the cart, the chosen address and live product prices just before
payment starts. It never gets a database identity. It lives in the staging
slot until the payment reaches a terminal outcome, and is then consumed
(success) or discarded (failure, cancellation).
"""

import json
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from protean.exceptions import ValidationError

from ordering.address.validation import address_errors
from ordering.utils.settings import setting


def shipping_for(subtotal: float) -> float:
    """Free shipping above the threshold, flat rate otherwise."""
    if subtotal > setting("FREE_SHIPPING_THRESHOLD"):
        return 0.0
    return float(setting("STANDARD_SHIPPING_COST"))


@dataclass(frozen=True)
class AddressSnapshot:
    full_name: str
    phone: str
    address_line_1: str
    city: str
    state: str
    postal_code: str
    address_line_2: str | None = None
    country: str = "India"

    @classmethod
    def from_dict(cls, data: dict) -> "AddressSnapshot":
        errors = address_errors(data)
        if errors:
            raise ValidationError(errors)
        return cls(
            full_name=data["full_name"].strip(),
            phone=data["phone"].strip(),
            address_line_1=data["address_line_1"].strip(),
            address_line_2=(data.get("address_line_2") or "").strip() or None,
            city=data["city"].strip(),
            state=data["state"].strip(),
            postal_code=data["postal_code"].strip(),
            country=(data.get("country") or "India").strip(),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PendingOrderLine:
    product_id: str
    product_name: str
    quantity: int
    price: float
    size: str | None = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class PendingOrder:
    user_id: str
    reference: str
    address: AddressSnapshot
    lines: tuple[PendingOrderLine, ...]
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    currency: str = "INR"
    notes: str | None = None
    payment_method: str = "razorpay"
    gateway_order_id: str | None = None
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def build(
        cls,
        user_id,
        address: AddressSnapshot,
        lines,
        notes=None,
        tax_amount=0.0,
        discount_amount=0.0,
        payment_method="razorpay",
    ) -> "PendingOrder":
        lines = tuple(lines)
        if not lines:
            raise ValidationError({"cart": ["Your cart is empty"]})

        subtotal = round(sum(line.line_total for line in lines), 2)
        shipping_cost = shipping_for(subtotal)
        total = round(subtotal + shipping_cost + tax_amount - discount_amount, 2)
        if total <= 0:
            raise ValidationError({"total_amount": ["Order total must be greater than zero"]})

        return cls(
            user_id=str(user_id),
            reference=f"rcpt_{uuid4().hex[:16]}",
            address=address,
            lines=lines,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total,
            currency=setting("CURRENCY"),
            notes=notes,
            payment_method=payment_method,
        )

    def with_gateway_order(self, gateway_order_id: str) -> "PendingOrder":
        return replace(self, gateway_order_id=gateway_order_id)

    def line_dicts(self) -> list[dict]:
        return [asdict(line) for line in self.lines]

    def to_json(self) -> str:
        data = asdict(self)
        data["lines"] = list(data["lines"])
        return json.dumps(data)

    @classmethod
    def from_json(cls, payload: str) -> "PendingOrder":
        data = json.loads(payload)
        data["address"] = AddressSnapshot(**data["address"])
        data["lines"] = tuple(PendingOrderLine(**line) for line in data["lines"])
        return cls(**data)
