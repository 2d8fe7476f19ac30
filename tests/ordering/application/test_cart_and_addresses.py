"""Application tests for cart and address book commands."""

import pytest
from ordering.address.address import Address
from ordering.address.management import DeleteAddress, SaveAddress
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.summary import cart_summary
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _cart(user_id="user-001"):
    return current_domain.repository_for(Cart).find_by_user(user_id)


def _add(product_id, quantity=1, size=None, user_id="user-001"):
    return current_domain.process(
        AddToCart(user_id=user_id, product_id=product_id, size=size, quantity=quantity),
        asynchronous=False,
    )


class TestCartCommands:
    def test_first_add_creates_cart(self):
        _add("prod-001")
        assert len(_cart().items) == 1

    def test_carts_are_per_user(self):
        _add("prod-001", user_id="user-001")
        _add("prod-001", user_id="user-002")
        assert len(_cart("user-001").items) == 1
        assert len(_cart("user-002").items) == 1

    def test_update_quantity(self):
        item_id = _add("prod-001")
        current_domain.process(
            UpdateCartQuantity(user_id="user-001", item_id=item_id, new_quantity=3),
            asynchronous=False,
        )
        assert _cart().items[0].quantity == 3

    def test_remove(self):
        item_id = _add("prod-001")
        current_domain.process(RemoveFromCart(user_id="user-001", item_id=item_id), asynchronous=False)
        assert _cart().items == []

    def test_clear(self):
        _add("prod-001")
        _add("prod-002")
        current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)
        assert _cart().items == []

    def test_clear_without_cart(self):
        current_domain.process(ClearCart(user_id="nobody"), asynchronous=False)
        assert _cart("nobody") is None


class TestCartSummary:
    def test_priced_with_live_prices(self, make_product):
        saree = make_product(price=2200.0)
        _add(str(saree.id), quantity=2)
        summary = cart_summary("user-001")
        assert summary.subtotal == 4400.0
        assert summary.shipping_cost == 0.0
        assert summary.total == 4400.0

    def test_shipping_below_threshold(self, make_product):
        kurta = make_product(name="Cotton Kurta", price=450.0)
        _add(str(kurta.id))
        summary = cart_summary("user-001").to_dict()
        assert summary["shipping_cost"] == 99.0
        assert summary["total"] == 549.0
        assert summary["item_count"] == 1

    def test_deleted_products_dropped(self, make_product):
        kurta = make_product(name="Cotton Kurta", price=450.0)
        _add(str(kurta.id))
        _add("prod-gone")
        assert [line.product_name for line in cart_summary("user-001").lines] == ["Cotton Kurta"]

    def test_flags_short_stock(self, make_product):
        kurta = make_product(name="Cotton Kurta", price=450.0, stock_quantity=1)
        _add(str(kurta.id), quantity=2)
        assert cart_summary("user-001").lines[0].in_stock is False

    def test_empty(self):
        summary = cart_summary("user-001")
        assert summary.lines == []
        assert summary.total == 0.0


class TestAddressBook:
    def _save(self, address, user_id="user-001", **overrides):
        return current_domain.process(SaveAddress(user_id=user_id, **{**address, **overrides}), asynchronous=False)

    def test_save_new(self, address):
        address_id = self._save(address)
        saved = current_domain.repository_for(Address).get(address_id)
        assert saved.city == "Bengaluru"

    def test_invalid_phone(self, address):
        with pytest.raises(ValidationError) as exc:
            self._save(address, phone="1234567890")
        assert "phone" in exc.value.messages

    def test_update_existing(self, address):
        address_id = self._save(address)
        self._save(address, address_id=address_id, city="Mysuru", postal_code="570001")
        assert current_domain.repository_for(Address).get(address_id).city == "Mysuru"

    def test_only_one_default(self, address):
        first = self._save(address, is_default=True)
        second = self._save(address, is_default=True)
        repo = current_domain.repository_for(Address)
        assert repo.get(first).is_default is False
        assert repo.get(second).is_default is True

    def test_cannot_touch_another_users_address(self, address):
        address_id = self._save(address, user_id="user-002")
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(DeleteAddress(user_id="user-001", address_id=address_id), asynchronous=False)

    def test_delete(self, address):
        address_id = self._save(address)
        current_domain.process(DeleteAddress(user_id="user-001", address_id=address_id), asynchronous=False)
        assert current_domain.repository_for(Address).for_user("user-001") == []
