"""Fold flat (order, item) rows back into nested orders.

``group_orders`` is the one place that knows how to turn the read view into
order objects; the customer order list and every admin screen go through it.
Rows are plain mappings so the function works the same on projection rows,
database records or hand-built fixtures.

Missing header values fall back to fixed defaults:

    order_number      first 8 characters of the order id, upper-cased
    amounts           0.0
    status            "pending"
    payment_status    "pending"
    free text         ""
    address fields    "" (country: "India")
    product_name      "Unknown Product"
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field

DEFAULT_STATUS = "pending"
DEFAULT_PAYMENT_STATUS = "pending"
DEFAULT_COUNTRY = "India"
UNKNOWN_PRODUCT = "Unknown Product"


@dataclass(frozen=True)
class AddressView:
    full_name: str = ""
    phone: str = ""
    address_line_1: str = ""
    address_line_2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY


@dataclass(frozen=True)
class OrderLineView:
    id: str
    product_id: str
    product_name: str
    size: str
    quantity: int
    price: float

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass
class OrderView:
    id: str
    order_number: str
    user_id: str
    status: str
    payment_status: str
    total_amount: float
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    currency: str
    shipping_address: AddressView
    payment_id: str
    gateway_order_id: str
    payment_method: str
    notes: str
    tracking_number: str
    estimated_delivery: str
    created_at: str
    updated_at: str
    items: list[OrderLineView] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def to_dict(self) -> dict:
        return asdict(self)


def _text(value) -> str:
    return "" if value is None else str(value)


def _number(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _count(value) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _address(raw) -> AddressView:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except ValueError:
            raw = {}
    if not isinstance(raw, Mapping):
        raw = {}

    return AddressView(
        full_name=_text(raw.get("full_name")),
        phone=_text(raw.get("phone")),
        address_line_1=_text(raw.get("address_line_1")),
        address_line_2=_text(raw.get("address_line_2")),
        city=_text(raw.get("city")),
        state=_text(raw.get("state")),
        postal_code=_text(raw.get("postal_code")),
        country=_text(raw.get("country")) or DEFAULT_COUNTRY,
    )


def _header(row: Mapping) -> OrderView:
    order_id = _text(row.get("order_id"))
    return OrderView(
        id=order_id,
        order_number=_text(row.get("order_number")) or order_id[:8].upper(),
        user_id=_text(row.get("user_id")),
        status=_text(row.get("status")) or DEFAULT_STATUS,
        payment_status=_text(row.get("payment_status")) or DEFAULT_PAYMENT_STATUS,
        total_amount=_number(row.get("total_amount")),
        shipping_cost=_number(row.get("shipping_cost")),
        tax_amount=_number(row.get("tax_amount")),
        discount_amount=_number(row.get("discount_amount")),
        currency=_text(row.get("currency")) or "INR",
        shipping_address=_address(row.get("shipping_address")),
        payment_id=_text(row.get("payment_id")),
        gateway_order_id=_text(row.get("gateway_order_id")),
        payment_method=_text(row.get("payment_method")),
        notes=_text(row.get("notes")),
        tracking_number=_text(row.get("tracking_number")),
        estimated_delivery=_text(row.get("estimated_delivery")),
        created_at=_text(row.get("created_at")),
        updated_at=_text(row.get("updated_at")),
    )


def _line(row: Mapping) -> OrderLineView:
    return OrderLineView(
        id=_text(row.get("order_item_id")),
        product_id=_text(row.get("product_id")),
        product_name=_text(row.get("product_name")) or UNKNOWN_PRODUCT,
        size=_text(row.get("size")),
        quantity=_count(row.get("quantity")),
        price=_number(row.get("item_price")),
    )


def group_orders(rows: Iterable[Mapping]) -> list[OrderView]:
    """Fold rows into one ``OrderView`` per distinct order id.

    Orders come out in the order their id was first seen. Rows of one order
    need not be adjacent. The first row seen for an order supplies its header.
    A row without ``order_item_id`` contributes no line.
    """
    orders: dict[str, OrderView] = {}
    for row in rows:
        order_id = _text(row.get("order_id"))
        if not order_id:
            continue

        order = orders.get(order_id)
        if order is None:
            order = orders[order_id] = _header(row)

        if row.get("order_item_id"):
            order.items.append(_line(row))

    return list(orders.values())


def to_rows(orders: Iterable[OrderView]) -> list[dict]:
    """Flatten orders back into (order, item) rows; the inverse of ``group_orders``."""
    rows = []
    for order in orders:
        header = asdict(order)
        header.pop("items")
        header["order_id"] = header.pop("id")
        if not order.items:
            rows.append({**header, "order_item_id": None})
            continue
        for line in order.items:
            rows.append(
                {
                    **header,
                    "order_item_id": line.id,
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "size": line.size,
                    "quantity": line.quantity,
                    "item_price": line.price,
                }
            )
    return rows
