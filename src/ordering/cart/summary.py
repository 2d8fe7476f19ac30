"""Priced view of a cart, using today's product prices."""

from dataclasses import asdict, dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.checkout.pending_order import shipping_for
from ordering.stock.product import Product


@dataclass(frozen=True)
class CartLine:
    item_id: str
    product_id: str
    product_name: str
    size: str | None
    quantity: int
    price: float
    in_stock: bool

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


@dataclass(frozen=True)
class CartSummary:
    user_id: str
    lines: list[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def shipping_cost(self) -> float:
        return shipping_for(self.subtotal) if self.lines else 0.0

    @property
    def total(self) -> float:
        return round(self.subtotal + self.shipping_cost, 2)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "items": [{**asdict(line), "line_total": line.line_total} for line in self.lines],
            "item_count": sum(line.quantity for line in self.lines),
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "total": self.total,
        }


def cart_summary(user_id) -> CartSummary:
    """The shopper's cart with live prices. Lines for deleted products are dropped."""
    cart = current_domain.repository_for(Cart).find_by_user(user_id)
    if cart is None:
        return CartSummary(user_id=str(user_id))

    products = current_domain.repository_for(Product)
    lines = []
    for item in cart.items:
        try:
            product = products.get(str(item.product_id))
        except ObjectNotFoundError:
            continue
        lines.append(
            CartLine(
                item_id=str(item.id),
                product_id=str(product.id),
                product_name=product.name,
                size=item.size,
                quantity=item.quantity,
                price=product.price,
                in_stock=product.is_active and product.stock_quantity >= item.quantity,
            )
        )
    return CartSummary(user_id=str(user_id), lines=lines)
