"""Order aggregate: the committed, paid record of a purchase.

An Order only comes into existence after its payment has been verified, so
it is born ``confirmed`` and ``paid``. From there the status moves along an
explicit state machine; everything else on the order is frozen at checkout.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING or CONFIRMED only)
    DELIVERED and CANCELLED are terminal, and the only states an order may
    be deleted from.
"""

import json
import secrets
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.utils.settings import setting


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class StatusActor(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# States from which the order may be deleted
_DELETABLE_STATES = {OrderStatus.CANCELLED, OrderStatus.DELIVERED}

CUSTOMER_CANCELLATION_MESSAGE = (
    "Order has been cancelled by customer. Refund will be processed within 5-7 business days."
)


class ActorNotPermitted(Exception):
    """The caller is not allowed to act on this order."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def allowed_transitions(status: str) -> set[str]:
    """Statuses reachable from ``status`` in one step."""
    return {s.value for s in _VALID_TRANSITIONS[OrderStatus(status)]}


def generate_order_number(placed_at: datetime) -> str:
    """Human-facing order number, e.g. ``VEW-20240611-3FA9C2``."""
    return f"VEW-{placed_at:%Y%m%d}-{secrets.token_hex(3).upper()}"


def tracking_copy(target: OrderStatus, actor: StatusActor) -> tuple[str, str]:
    """Tracking label and message recorded for a transition."""
    if target == OrderStatus.CANCELLED and actor == StatusActor.CUSTOMER:
        return "Order Cancelled", CUSTOMER_CANCELLATION_MESSAGE
    return (
        f"Order {target.value.capitalize()}",
        f"Order status updated to {target.value} by {actor.value}.",
    )


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address copied onto the order at checkout.

    It is a snapshot, not a reference: editing or deleting the address book
    entry later leaves placed orders untouched.
    """

    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=15)
    address_line_1 = String(required=True, max_length=255)
    address_line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=10)
    country = String(max_length=100, default="India")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order", schema_name="order_items")
class OrderItem:
    """A purchased line. The price is the one shown at checkout, not today's."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    size = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate(schema_name="orders")
class Order:
    order_number = String(required=True, max_length=30)
    user_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    total_amount = Float(required=True, min_value=0.0)
    shipping_cost = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    currency = String(max_length=3, default="INR")
    payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    payment_method = String(max_length=50)
    notes = Text()
    tracking_number = String(max_length=100)
    estimated_delivery = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_lines_and_charges(self):
        expected = (
            sum(item.price * item.quantity for item in self.items or [])
            + (self.shipping_cost or 0.0)
            + (self.tax_amount or 0.0)
            - (self.discount_amount or 0.0)
        )
        if abs(expected - (self.total_amount or 0.0)) > 0.01:
            raise ValidationError(
                {"total_amount": [f"Total {self.total_amount:.2f} does not match lines and charges ({expected:.2f})"]}
            )

    @property
    def subtotal(self) -> float:
        return sum(item.price * item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        shipping_address,
        total_amount,
        payment_id,
        gateway_order_id=None,
        payment_method=None,
        shipping_cost=0.0,
        tax_amount=0.0,
        discount_amount=0.0,
        currency="INR",
        notes=None,
    ):
        """Create a confirmed, paid order from a verified checkout.

        Args:
            user_id: The buyer.
            lines: List of dicts with product_id, product_name, size,
                   quantity, price.
            shipping_address: Dict with the ShippingAddress fields.
            total_amount: Grand total the buyer paid.
            payment_id: Verified gateway payment id.
        """
        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=line["product_id"],
                product_name=line["product_name"],
                size=line.get("size"),
                quantity=line["quantity"],
                price=line["price"],
            )
            for line in lines
        ]

        order = cls(
            order_number=generate_order_number(now),
            user_id=user_id,
            status=OrderStatus.CONFIRMED.value,
            payment_status=PaymentStatus.PAID.value,
            items=items,
            shipping_address=ShippingAddress(**shipping_address),
            total_amount=total_amount,
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            currency=currency,
            payment_id=payment_id,
            gateway_order_id=gateway_order_id,
            payment_method=payment_method,
            notes=notes,
            estimated_delivery=now + timedelta(days=setting("DELIVERY_WINDOW_DAYS")),
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {
                            "item_id": str(item.id),
                            "product_id": str(item.product_id),
                            "product_name": item.product_name,
                            "size": item.size,
                            "quantity": item.quantity,
                            "price": item.price,
                        }
                        for item in order.items
                    ]
                ),
                shipping_address=json.dumps(shipping_address),
                status=order.status,
                payment_status=order.payment_status,
                total_amount=order.total_amount,
                shipping_cost=order.shipping_cost,
                tax_amount=order.tax_amount,
                discount_amount=order.discount_amount,
                currency=order.currency,
                payment_id=payment_id,
                gateway_order_id=gateway_order_id,
                payment_method=payment_method,
                notes=notes,
                estimated_delivery=order.estimated_delivery,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def assert_actor_may_manage(self, user_id, is_admin=False):
        """Only the buyer or an admin may cancel or delete an order."""
        if not is_admin and not self.is_owned_by(user_id):
            raise ActorNotPermitted("You can only manage your own orders")

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def change_status(self, new_status, changed_by=StatusActor.ADMIN):
        """Move the order to ``new_status`` and record why.

        Returns the (label, message) pair the tracking trail should carry.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status {new_status}"]}) from None
        actor = StatusActor(changed_by)

        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        label, message = tracking_copy(target, actor)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                previous_status=previous,
                new_status=target.value,
                changed_by=actor.value,
                tracking_label=label,
                message=message,
                changed_at=now,
            )
        )
        return label, message

    def cancel(self, cancelled_by=StatusActor.CUSTOMER):
        """Cancel the order. Only allowed before it starts processing."""
        if OrderStatus(self.status) not in _CANCELLABLE_STATES:
            raise ValidationError({"status": [f"Order cannot be cancelled once it is {self.status}"]})
        return self.change_status(OrderStatus.CANCELLED.value, cancelled_by)

    def assert_deletable(self):
        if OrderStatus(self.status) not in _DELETABLE_STATES:
            raise ValidationError({"status": ["Only cancelled or delivered orders can be deleted"]})


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order lookups beyond fetch-by-id."""

    def find_by_payment_id(self, payment_id: str) -> Order | None:
        results = self._dao.query.filter(payment_id=payment_id).all().items
        return results[0] if results else None

    def for_user(self, user_id: str) -> list[Order]:
        return self._dao.query.filter(user_id=user_id).order_by("-created_at").all().items
