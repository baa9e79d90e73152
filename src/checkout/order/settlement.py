"""Side effects that follow an order's payment outcome.

``accept_order`` runs once payment is confirmed, or deferred to delivery for
COD. It claims stock at the order's warehouse, debits the held reward points
and assigns a delivery agent. ``unwind_order`` reverses whichever of those
effects happened when an order is cancelled. ``compensate`` undoes a
half-finished placement so a failed attempt leaves nothing behind.
"""

from checkout.delivery import assignment
from checkout.domain import logger
from checkout.errors import InsufficientStock, NoFulfillableWarehouse
from checkout.inventory import reservation
from checkout.order.order import InventoryState
from checkout.rewards import service as rewards


def _claim_stock(order):
    """Reserve at the warehouse chosen at checkout, falling back to another that can still cover the order."""
    warehouse_id = order.fulfillment_warehouse_id
    lines = order.product_lines
    try:
        if not warehouse_id:
            raise NoFulfillableWarehouse({"items": ["No warehouse was chosen for this order"]})
        reservation.reserve_order(warehouse_id, order.id, lines)
    except (InsufficientStock, NoFulfillableWarehouse):
        warehouse_id = reservation.select_warehouse(order.shipping_address.pincode, lines).id
        reservation.reserve_order(warehouse_id, order.id, lines)
    order.record_inventory_reserved(warehouse_id)


def accept_order(order):
    _claim_stock(order)

    if order.redeemed_points:
        # Re-holding is a no-op while the checkout hold is live; it re-acquires
        # the points if a failed attempt released them.
        rewards.redeem_points(order.customer_id, order.id, order.redeemed_points)
        rewards.confirm_redemption(order.customer_id, order.id)

    assignment.assign_order(order)
    logger.info(
        "order_accepted",
        order_id=order.id,
        payment_method=order.payment_method,
        warehouse_id=order.fulfillment_warehouse_id,
        agent_id=order.delivery_agent_id,
    )


def unwind_order(order):
    if order.inventory_state == InventoryState.RESERVED.value:
        reservation.release_order(order.fulfillment_warehouse_id, order.id, [p for p, _ in order.product_lines])
        order.record_inventory_released()

    if order.redeemed_points:
        rewards.release_redemption(order.customer_id, order.id)
        rewards.restore_redemption(order.customer_id, order.id)

    assignment.release_order(order)


def compensate(customer_id, order_id, warehouse_id=None, product_ids=()):
    """Best-effort rollback of a placement or payment attempt that failed midway."""
    if warehouse_id:
        reservation.release_order(warehouse_id, order_id, product_ids)
    rewards.release_redemption(customer_id, order_id)
    rewards.restore_redemption(customer_id, order_id)
    logger.info("checkout_compensated", order_id=order_id, customer_id=customer_id)


def award_points(order) -> int:
    """Credit reward points once an order is both delivered and paid."""
    if not (order.is_delivered and order.is_paid):
        return 0
    return rewards.earn_points(order.customer_id, order.id, order.total_price)
