import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _fresh_staging():
    from ordering.checkout.staging import reset_staging_store

    reset_staging_store()
    yield
    reset_staging_store()


@pytest.fixture()
def address():
    return {
        "full_name": "Ananya Sharma",
        "phone": "9876543210",
        "address_line_1": "12 MG Road",
        "address_line_2": "Near City Mall",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
    }


@pytest.fixture()
def make_product():
    """Persist a product and return it."""
    from ordering.stock.product import Product
    from protean import current_domain

    def _make(name="Banarasi Silk Saree", price=2200.0, stock_quantity=10):
        product = Product.create(name=name, price=price, stock_quantity=stock_quantity)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def place_order(address):
    """Place a paid order directly through ``PlaceOrder`` and return its id."""
    import json

    from ordering.checkout.assembler import PlaceOrder
    from protean import current_domain

    counter = {"n": 0}

    def _place(user_id="user-001", lines=None, shipping_cost=0.0, payment_id=None):
        counter["n"] += 1
        lines = lines or [
            {
                "product_id": "prod-001",
                "product_name": "Banarasi Silk Saree",
                "size": None,
                "quantity": 1,
                "price": 2200.0,
            }
        ]
        total = sum(line["price"] * line["quantity"] for line in lines) + shipping_cost
        return current_domain.process(
            PlaceOrder(
                user_id=user_id,
                payment_id=payment_id or f"pay_test_{counter['n']:04d}",
                gateway_order_id=f"order_test_{counter['n']:04d}",
                payment_method="razorpay",
                lines=json.dumps(lines),
                shipping_address=json.dumps(address),
                shipping_cost=shipping_cost,
                total_amount=total,
            ),
            asynchronous=False,
        )

    return _place
