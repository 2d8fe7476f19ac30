"""Product aggregate: the sellable item and its authoritative stock level."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from ordering.domain import ordering
from ordering.utils.settings import setting


@ordering.aggregate(schema_name="products")
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, stock_quantity=0, description=None):
        now = datetime.now(UTC)
        return cls(
            name=name,
            description=description,
            price=price,
            stock_quantity=stock_quantity,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_low_on_stock(self) -> bool:
        return self.stock_quantity < setting("LOW_STOCK_THRESHOLD")

    def restock(self, quantity):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.stock_quantity += quantity
        self.updated_at = datetime.now(UTC)

    def assert_can_sell(self, quantity):
        """Checkout-time check; the ledger itself tolerates oversell."""
        if not self.is_active:
            raise ValidationError({"product_id": [f"{self.name} is no longer available"]})
        if quantity > self.stock_quantity:
            raise ValidationError(
                {"quantity": [f"Only {self.stock_quantity} of {self.name} left in stock, {quantity} requested"]}
            )
