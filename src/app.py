"""Aurelia checkout FastAPI application.

Processes checkout commands synchronously over HTTP. Every request runs
inside the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml:
#   - default      → memory stores, sync event processing
#   - "production" → postgresql, async event processing via the Engine
from uuid import uuid4

from checkout.domain import checkout  # noqa: E402
from checkout.utils.logging import bind_request_context, clear_request_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
checkout.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Aurelia Checkout API",
    description="Jewellery checkout: orders, payments, rewards, inventory and delivery",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context and bind request logging context."""
    bind_request_context(
        request_id=request.headers.get("X-Request-Id", uuid4().hex),
        user_id=request.headers.get("X-User-Id"),
        path=request.url.path,
    )
    try:
        with checkout.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import (  # noqa: E402
    admin_order_router,
    agent_router,
    order_router,
    payment_router,
    pincode_router,
    reward_router,
    warehouse_router,
)

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(admin_order_router)
app.include_router(pincode_router)
app.include_router(reward_router)
app.include_router(warehouse_router)
app.include_router(agent_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": checkout.name})
