"""Checkout bounded context — order placement, payment orchestration and fulfillment.

Owns the order aggregate and the resources it coordinates at checkout:
pincode serviceability, reward ledgers, warehouse stock and delivery agents.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
