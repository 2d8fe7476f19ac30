"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.cart import Cart
from ordering.order.order import ActorNotPermitted, Order
from ordering.order.tracking import tracking_for
from ordering.projections.queries import orders_for_user
from ordering.stock.product import Product
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def user_id():
    return "user-001"


@pytest.fixture()
def products():
    """Products created by Given steps, keyed by name."""
    return {}


@pytest.fixture()
def error():
    """Container for an exception raised by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:d} with {stock:d} in stock'))
def _(make_product, products, name, price, stock):
    products[name] = make_product(name=name, price=float(price), stock_quantity=stock)


@given("the shopper has a confirmed order", target_fixture="order_id")
def _(place_order, user_id):
    return place_order(user_id=user_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.re(r"the shopper has (?P<count>\d+) orders?"), converters={"count": int})
def _(user_id, count):
    assert len(orders_for_user(user_id)) == count


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(products, name, stock):
    product = current_domain.repository_for(Product).get(str(products[name].id))
    assert product.stock_quantity == stock


@then("the shopper's cart is empty")
def _(user_id):
    cart = current_domain.repository_for(Cart).find_by_user(user_id)
    assert cart is None or cart.items == []


@then(parsers.cfparse("the shopper's cart still holds {count:d} items"))
def _(user_id, count):
    cart = current_domain.repository_for(Cart).find_by_user(user_id)
    assert sum(item.quantity for item in cart.items) == count


@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the tracking timeline reads "{labels}"'))
def _(order_id, labels):
    assert [entry.status for entry in tracking_for(order_id)] == labels.split(", ")


@then(parsers.cfparse('the latest tracking entry is "{label}"'))
def _(order_id, label):
    assert tracking_for(order_id)[-1].status == label


@then("the status change is refused")
def _(error):
    assert isinstance(error["exc"], ValidationError)


@then("the cancellation is forbidden")
def _(error):
    assert isinstance(error["exc"], ActorNotPermitted)
