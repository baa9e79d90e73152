"""Checkout API package."""

from checkout.api.routes import (
    admin_order_router,
    agent_router,
    order_router,
    payment_router,
    pincode_router,
    reward_router,
    warehouse_router,
)

__all__ = [
    "order_router",
    "payment_router",
    "admin_order_router",
    "pincode_router",
    "reward_router",
    "warehouse_router",
    "agent_router",
]
