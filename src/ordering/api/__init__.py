"""Ordering domain API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import (
    address_router,
    admin_router,
    cart_router,
    checkout_router,
    notification_router,
    order_router,
)

__all__ = [
    "address_router",
    "admin_router",
    "cart_router",
    "checkout_router",
    "notification_router",
    "order_router",
    "register_exception_handlers",
]
