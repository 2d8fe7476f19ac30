"""FastAPI endpoints for the Ordering domain.

The caller's identity comes from the ``X-User-Id`` header, set by the
authentication proxy in front of this service. Admin endpoints also
require ``X-User-Role: admin``.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.address.address import Address
from ordering.address.management import DeleteAddress, SaveAddress
from ordering.api.schemas import (
    AddProductRequest,
    AddressIdResponse,
    AddToCartRequest,
    BeginCheckoutRequest,
    CheckoutResultResponse,
    ItemIdResponse,
    NotificationResponse,
    OrderIdResponse,
    OrderStatusResponse,
    PaymentCancelRequest,
    PaymentFailureRequest,
    PaymentRequestResponse,
    PaymentSuccessRequest,
    ProductIdResponse,
    ResolveCaseRequest,
    RestockProductRequest,
    SaveAddressRequest,
    StatusResponse,
    StockLevelResponse,
    TrackingEntryResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.summary import cart_summary
from ordering.checkout.reconciliation import ResolveReconciliationCase, open_cases
from ordering.checkout.workflow import CheckoutWorkflow
from ordering.notification.notification import MarkNotificationRead, Notification
from ordering.order.deletion import DeleteOrder
from ordering.order.order import Order
from ordering.order.status import CancelOrder, UpdateOrderStatus
from ordering.order.tracking import tracking_for
from ordering.projections.dashboard import dashboard_stats
from ordering.projections.queries import all_orders, order_for_user, orders_for_user
from ordering.stock.management import AddProduct, RestockProduct
from ordering.stock.product import Product
from payments.gateway.port import PaymentCancelled, PaymentFailure, PaymentSuccess

cart_router = APIRouter(prefix="/cart", tags=["cart"])
address_router = APIRouter(prefix="/addresses", tags=["addresses"])
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------
def current_user_id(x_user_id: str = Header(default="")) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Please sign in to continue")
    return x_user_id


def require_admin(
    user_id: str = Depends(current_user_id),
    x_user_role: str = Header(default=""),
) -> str:
    if x_user_role.lower() != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id


# --- Cart endpoints ---


@cart_router.get("")
async def get_cart(user_id: str = Depends(current_user_id)) -> dict:
    return cart_summary(user_id).to_dict()


@cart_router.post("/items", status_code=201, response_model=ItemIdResponse)
async def add_to_cart(body: AddToCartRequest, user_id: str = Depends(current_user_id)) -> ItemIdResponse:
    command = AddToCart(
        user_id=user_id,
        product_id=body.product_id,
        size=body.size,
        quantity=body.quantity,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@cart_router.put("/items/{item_id}", response_model=StatusResponse)
async def update_cart_quantity(
    item_id: str, body: UpdateCartQuantityRequest, user_id: str = Depends(current_user_id)
) -> StatusResponse:
    command = UpdateCartQuantity(user_id=user_id, item_id=item_id, new_quantity=body.new_quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/items/{item_id}", response_model=StatusResponse)
async def remove_from_cart(item_id: str, user_id: str = Depends(current_user_id)) -> StatusResponse:
    current_domain.process(RemoveFromCart(user_id=user_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(user_id: str = Depends(current_user_id)) -> StatusResponse:
    current_domain.process(ClearCart(user_id=user_id), asynchronous=False)
    return StatusResponse()


# --- Address book endpoints ---


@address_router.get("")
async def list_addresses(user_id: str = Depends(current_user_id)) -> list[dict]:
    addresses = current_domain.repository_for(Address).for_user(user_id)
    return [{"id": str(a.id), "is_default": a.is_default, **a.snapshot()} for a in addresses]


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: SaveAddressRequest, user_id: str = Depends(current_user_id)) -> AddressIdResponse:
    command = SaveAddress(user_id=user_id, **body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=result)


@address_router.put("/{address_id}", response_model=AddressIdResponse)
async def update_address(
    address_id: str, body: SaveAddressRequest, user_id: str = Depends(current_user_id)
) -> AddressIdResponse:
    command = SaveAddress(user_id=user_id, address_id=address_id, **body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=result)


@address_router.delete("/{address_id}", response_model=StatusResponse)
async def delete_address(address_id: str, user_id: str = Depends(current_user_id)) -> StatusResponse:
    current_domain.process(DeleteAddress(user_id=user_id, address_id=address_id), asynchronous=False)
    return StatusResponse()


# --- Checkout endpoints ---


@checkout_router.post("", status_code=201, response_model=PaymentRequestResponse)
async def begin_checkout(body: BeginCheckoutRequest, user_id: str = Depends(current_user_id)) -> PaymentRequestResponse:
    request = CheckoutWorkflow().begin_checkout(
        user_id,
        address_id=body.address_id,
        address=body.address.model_dump(exclude_none=True) if body.address else None,
        notes=body.notes,
        payment_method=body.payment_method,
    )
    return PaymentRequestResponse(
        key_id=request.key_id,
        gateway_order_id=request.gateway_order_id,
        amount=request.amount,
        currency=request.currency,
        receipt=request.receipt,
        prefill=request.prefill,
    )


@checkout_router.get("")
async def pending_checkout(user_id: str = Depends(current_user_id)) -> dict:
    pending = CheckoutWorkflow().pending_checkout(user_id)
    return {
        "reference": pending.reference,
        "gateway_order_id": pending.gateway_order_id,
        "address": pending.address.to_dict(),
        "items": pending.line_dicts(),
        "subtotal": pending.subtotal,
        "shipping_cost": pending.shipping_cost,
        "total_amount": pending.total_amount,
        "currency": pending.currency,
    }


def _result_response(result) -> CheckoutResultResponse:
    return CheckoutResultResponse(
        status=result.status,
        message=result.message,
        order_id=result.order_id,
        order_number=result.order_number,
        payment_id=result.payment_id,
    )


@checkout_router.post("/payment/success", response_model=CheckoutResultResponse)
async def payment_succeeded(
    body: PaymentSuccessRequest, user_id: str = Depends(current_user_id)
) -> CheckoutResultResponse:
    outcome = PaymentSuccess(
        payment_id=body.razorpay_payment_id,
        gateway_order_id=body.razorpay_order_id,
        signature=body.razorpay_signature,
    )
    return _result_response(CheckoutWorkflow().complete_checkout(user_id, outcome))


@checkout_router.post("/payment/failure", response_model=CheckoutResultResponse)
async def payment_failed(body: PaymentFailureRequest, user_id: str = Depends(current_user_id)) -> CheckoutResultResponse:
    outcome = PaymentFailure(
        reason=body.reason,
        code=body.code,
        gateway_order_id=body.razorpay_order_id,
        payment_id=body.razorpay_payment_id,
    )
    return _result_response(CheckoutWorkflow().complete_checkout(user_id, outcome))


@checkout_router.post("/payment/cancel", response_model=CheckoutResultResponse)
async def payment_cancelled(
    body: PaymentCancelRequest | None = None, user_id: str = Depends(current_user_id)
) -> CheckoutResultResponse:
    outcome = PaymentCancelled(gateway_order_id=body.razorpay_order_id if body else None)
    return _result_response(CheckoutWorkflow().complete_checkout(user_id, outcome))


# --- Order endpoints ---


@order_router.get("")
async def list_orders(user_id: str = Depends(current_user_id)) -> list[dict]:
    return [{**order.to_dict(), "item_count": order.item_count} for order in orders_for_user(user_id)]


@order_router.get("/{order_id}")
async def get_order(order_id: str, user_id: str = Depends(current_user_id)) -> dict:
    order = order_for_user(user_id, order_id)
    if order is None:
        raise ObjectNotFoundError(f"Order {order_id} not found")
    return {**order.to_dict(), "item_count": order.item_count}


@order_router.get("/{order_id}/tracking", response_model=list[TrackingEntryResponse])
async def get_tracking(
    order_id: str,
    user_id: str = Depends(current_user_id),
    x_user_role: str = Header(default=""),
) -> list[TrackingEntryResponse]:
    order = current_domain.repository_for(Order).get(order_id)
    order.assert_actor_may_manage(user_id, is_admin=x_user_role.lower() == "admin")
    return [
        TrackingEntryResponse(status=entry.status, message=entry.message, created_at=entry.created_at.isoformat())
        for entry in tracking_for(order_id)
    ]


@order_router.put("/{order_id}/cancel", response_model=OrderStatusResponse)
async def cancel_order(order_id: str, user_id: str = Depends(current_user_id)) -> OrderStatusResponse:
    command = CancelOrder(order_id=order_id, requested_by=user_id, is_admin=False)
    status = current_domain.process(command, asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.delete("/{order_id}", response_model=OrderIdResponse)
async def delete_order(order_id: str, user_id: str = Depends(current_user_id)) -> OrderIdResponse:
    command = DeleteOrder(order_id=order_id, requested_by=user_id, is_admin=False)
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


# --- Notification endpoints ---


@notification_router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = False, user_id: str = Depends(current_user_id)
) -> list[NotificationResponse]:
    notifications = current_domain.repository_for(Notification).for_user(user_id, unread_only=unread_only)
    return [
        NotificationResponse(
            id=str(n.id),
            notification_type=n.notification_type,
            title=n.title,
            message=n.message,
            action_url=n.action_url,
            is_read=n.is_read,
            created_at=n.created_at.isoformat(),
        )
        for n in notifications
    ]


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(notification_id: str, user_id: str = Depends(current_user_id)) -> StatusResponse:
    command = MarkNotificationRead(user_id=user_id, notification_id=notification_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# --- Admin endpoints ---


@admin_router.get("/dashboard")
async def get_dashboard(admin_id: str = Depends(require_admin)) -> dict:
    return dashboard_stats().to_dict()


@admin_router.get("/orders")
async def admin_list_orders(
    status: str | None = None,
    search: str | None = None,
    admin_id: str = Depends(require_admin),
) -> list[dict]:
    return [{**order.to_dict(), "item_count": order.item_count} for order in all_orders(status=status, search=search)]


@admin_router.put("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def admin_update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, admin_id: str = Depends(require_admin)
) -> OrderStatusResponse:
    status = current_domain.process(UpdateOrderStatus(order_id=order_id, new_status=body.status), asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@admin_router.put("/orders/{order_id}/cancel", response_model=OrderStatusResponse)
async def admin_cancel_order(order_id: str, admin_id: str = Depends(require_admin)) -> OrderStatusResponse:
    command = CancelOrder(order_id=order_id, requested_by=admin_id, is_admin=True)
    status = current_domain.process(command, asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@admin_router.delete("/orders/{order_id}", response_model=OrderIdResponse)
async def admin_delete_order(order_id: str, admin_id: str = Depends(require_admin)) -> OrderIdResponse:
    command = DeleteOrder(order_id=order_id, requested_by=admin_id, is_admin=True)
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@admin_router.get("/products")
async def admin_list_products(admin_id: str = Depends(require_admin)) -> list[dict]:
    products = current_domain.repository_for(Product)._dao.query.order_by("name").all().items
    return [
        {
            "id": str(p.id),
            "name": p.name,
            "price": p.price,
            "stock_quantity": p.stock_quantity,
            "is_active": p.is_active,
            "low_stock": p.is_low_on_stock,
        }
        for p in products
    ]


@admin_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def admin_add_product(body: AddProductRequest, admin_id: str = Depends(require_admin)) -> ProductIdResponse:
    command = AddProduct(
        name=body.name,
        description=body.description,
        price=body.price,
        stock_quantity=body.stock_quantity,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@admin_router.put("/products/{product_id}/restock", response_model=StockLevelResponse)
async def admin_restock_product(
    product_id: str, body: RestockProductRequest, admin_id: str = Depends(require_admin)
) -> StockLevelResponse:
    result = current_domain.process(RestockProduct(product_id=product_id, quantity=body.quantity), asynchronous=False)
    return StockLevelResponse(product_id=product_id, stock_quantity=result)


@admin_router.get("/reconciliation")
async def admin_list_reconciliation_cases(kind: str | None = None, admin_id: str = Depends(require_admin)) -> list[dict]:
    return [
        {
            "id": str(case.id),
            "kind": case.kind,
            "status": case.status,
            "order_id": str(case.order_id) if case.order_id else None,
            "payment_id": case.payment_id,
            "product_id": str(case.product_id) if case.product_id else None,
            "details": case.details,
            "created_at": case.created_at.isoformat(),
        }
        for case in open_cases(kind=kind)
    ]


@admin_router.put("/reconciliation/{case_id}/resolve", response_model=StatusResponse)
async def admin_resolve_case(
    case_id: str, body: ResolveCaseRequest, admin_id: str = Depends(require_admin)
) -> StatusResponse:
    command = ResolveReconciliationCase(case_id=case_id, resolution_note=body.resolution_note)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
