"""Cart aggregate: the lines a shopper intends to buy.

One cart per user. Adding a product in a size that is already in the cart
tops up that line rather than creating a second one. Prices are not held
here; checkout reads them from the product at the moment of staging.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from ordering.domain import ordering


@ordering.entity(part_of="Cart", schema_name="cart_items")
class CartItem:
    product_id = Identifier(required=True)
    size = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, size=None):
        """Add a product to the cart (or increase quantity if already present)."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and (i.size or None) == (size or None)),
            None,
        )

        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(product_id=product_id, size=size, quantity=quantity, added_at=now)
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                item_id=item_id,
                product_id=str(product_id),
                size=size,
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        """Change a line's quantity. Anything below 1 removes the line."""
        if new_quantity < 1:
            self.remove_item(item_id)
            return

        item = self._find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        """Empty the cart. A no-op on an empty cart."""
        count = len(self.items)
        if not count:
            return
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id), items_removed=count))


@ordering.repository(part_of=Cart)
class CartRepository:
    def find_by_user(self, user_id) -> Cart | None:
        results = self._dao.query.filter(user_id=str(user_id)).all().items
        return results[0] if results else None

    def for_user(self, user_id) -> Cart:
        """The user's cart, created (unsaved) on first use."""
        return self.find_by_user(user_id) or Cart.create(user_id)
