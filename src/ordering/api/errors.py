"""Map ordering exceptions onto HTTP responses.

Protean's own handlers cover validation (400) and missing objects (404).
Checkout failures answer with their own status and the shopper-facing
message; the technical message is logged, never returned.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from ordering.checkout.errors import CheckoutError
from ordering.order.order import ActorNotPermitted

logger = structlog.get_logger(__name__)


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    logger.warning(
        "Checkout request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})


async def actor_not_permitted_handler(request: Request, exc: ActorNotPermitted) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)
    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(ActorNotPermitted, actor_not_permitted_handler)
