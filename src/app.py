"""Varsh storefront FastAPI application.

Serves the ordering domain (cart, address book, checkout, orders,
notifications and the admin back office) and the payment gateway
boundary. Every ordering request runs inside the ordering domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share one domain.
# PROTEAN_ENV picks the config overlay:
#   - "test"       → handlers for OrderPlaced run inside the request's UoW
#   - "production" → they run in the Engine (see server.py)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.utils.logging import add_context, clear_context  # noqa: E402

ordering.init()

# Paths served without an ordering domain context
_CONTEXT_FREE_PREFIXES = ("/payments", "/health", "/docs", "/redoc", "/openapi.json")


def _needs_domain_context(path: str) -> bool:
    return not path.startswith(_CONTEXT_FREE_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Varsh Storefront API",
    description="Ethnic-wear storefront: cart, checkout, orders and back office",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Run ordering requests inside the ordering domain context."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    if not _needs_domain_context(request.url.path):
        return await call_next(request)
    with ordering.domain_context():
        return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import (  # noqa: E402
    address_router,
    admin_router,
    cart_router,
    checkout_router,
    notification_router,
    order_router,
    register_exception_handlers,
)
from payments.api import payment_router  # noqa: E402

for router in (
    cart_router,
    address_router,
    checkout_router,
    order_router,
    notification_router,
    admin_router,
    payment_router,
):
    app.include_router(router)

register_exception_handlers(app)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ordering.name})
