"""BDD tests for paying for a cart."""

import pytest
from ordering.address.management import SaveAddress
from ordering.cart.items import AddToCart
from ordering.checkout.staging import CheckoutStaging
from ordering.checkout.workflow import CheckoutWorkflow
from payments.gateway import get_gateway
from payments.gateway.port import PaymentSuccess
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/checkout.feature")


@pytest.fixture()
def checkout():
    """Holds the payment request and the latest outcome across steps."""
    return {"request": None, "outcome": None, "result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the shopper has {quantity:d} of "{name}" in the cart'))
def _(user_id, products, quantity, name):
    current_domain.process(
        AddToCart(user_id=user_id, product_id=str(products[name].id), quantity=quantity),
        asynchronous=False,
    )


@given("the shopper has saved a delivery address", target_fixture="address_id")
def _(user_id, address):
    return current_domain.process(SaveAddress(user_id=user_id, is_default=True, **address), asynchronous=False)


@given(parsers.cfparse('the gateway declines payments with "{reason}"'))
def _(reason):
    get_gateway().configure(should_succeed=False, failure_reason=reason)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the shopper begins checkout")
def _(checkout, user_id, address_id):
    checkout["request"] = CheckoutWorkflow().begin_checkout(user_id, address_id=address_id)


@when("the shopper completes payment")
def _(checkout, user_id):
    outcome = get_gateway().simulate_checkout(checkout["request"].gateway_order_id)
    checkout["outcome"] = outcome
    checkout["result"] = CheckoutWorkflow().complete_checkout(user_id, outcome)


@when("the same payment callback arrives again")
def _(checkout, user_id):
    checkout["result"] = CheckoutWorkflow().complete_checkout(user_id, checkout["outcome"])


@when("the shopper submits a payment with a forged signature")
def _(checkout, user_id):
    forged = PaymentSuccess(
        gateway_order_id=checkout["request"].gateway_order_id,
        payment_id="pay_forged0001",
        signature="0" * 64,
    )
    checkout["result"] = CheckoutWorkflow().complete_checkout(user_id, forged)


@when("the shopper dismisses the payment widget")
def _(checkout, user_id):
    outcome = get_gateway().simulate_checkout(checkout["request"].gateway_order_id, dismissed=True)
    checkout["result"] = CheckoutWorkflow().complete_checkout(user_id, outcome)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout status is "{status}"'))
def _(checkout, status):
    assert checkout["result"].status == status


@then("there is no pending checkout for the shopper")
def _(user_id):
    assert CheckoutStaging().peek(user_id) is None
