"""Address book: the saved delivery addresses a shopper picks from at checkout.

Orders never point at these records. Checkout copies the chosen address
onto the order, so editing or deleting an entry here has no effect on
orders already placed.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from ordering.address.validation import address_errors
from ordering.domain import ordering

ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "address_line_1",
    "address_line_2",
    "city",
    "state",
    "postal_code",
    "country",
)


@ordering.aggregate(schema_name="addresses")
class Address:
    user_id = Identifier(required=True)
    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=15)
    address_line_1 = String(required=True, max_length=255)
    address_line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=10)
    country = String(max_length=100, default="India")
    is_default = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, is_default=False, **fields):
        errors = address_errors(fields)
        if errors:
            raise ValidationError(errors)
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            is_default=is_default,
            created_at=now,
            updated_at=now,
            **{name: fields.get(name) for name in ADDRESS_FIELDS if fields.get(name) is not None},
        )

    def revise(self, **fields):
        merged = {**self.snapshot(), **{k: v for k, v in fields.items() if k in ADDRESS_FIELDS}}
        errors = address_errors(merged)
        if errors:
            raise ValidationError(errors)
        for name in ADDRESS_FIELDS:
            setattr(self, name, merged.get(name))
        self.updated_at = datetime.now(UTC)

    def snapshot(self) -> dict:
        """Plain copy of the address fields, as stored on orders."""
        return {name: getattr(self, name) for name in ADDRESS_FIELDS}

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)


@ordering.repository(part_of=Address)
class AddressRepository:
    def for_user(self, user_id) -> list[Address]:
        return self._dao.query.filter(user_id=str(user_id)).order_by("created_at").all().items
