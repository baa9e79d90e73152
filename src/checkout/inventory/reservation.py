"""Stock reservation and warehouse selection.

Reserve, release and commit each save under protean's aggregate version
check, so two checkouts racing for the last units cannot both
see them as available. An order is fulfilled from a single warehouse; its
lines are reserved all-or-nothing.
"""

from collections import Counter

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.domain import logger
from checkout.errors import InsufficientStock, NoFulfillableWarehouse
from checkout.inventory.stock import WarehouseStock, stock_id
from checkout.inventory.warehouse import Warehouse
from checkout.utils.concurrency import update_with_retry


def _totals(lines) -> Counter:
    """Sum quantities per product from ``(product_id, quantity)`` pairs."""
    totals = Counter()
    for product_id, quantity in lines:
        totals[product_id] += quantity
    return totals


def _load_stock(warehouse_id, product_id):
    repo = current_domain.repository_for(WarehouseStock)
    return repo, repo.get(stock_id(warehouse_id, product_id))


def get_stock(warehouse_id, product_id) -> WarehouseStock | None:
    try:
        return _load_stock(warehouse_id, product_id)[1]
    except ObjectNotFoundError:
        return None


def get_product_stock(warehouse_id, product_id) -> int:
    """Units of ``product_id`` a new order could claim at ``warehouse_id``."""
    stock = get_stock(warehouse_id, product_id)
    return stock.available if stock else 0


def list_stock(warehouse_id) -> list[WarehouseStock]:
    repo = current_domain.repository_for(WarehouseStock)
    return sorted(
        repo._dao.query.filter(warehouse_id=warehouse_id).all().items,
        key=lambda s: s.product_id,
    )


def reserve(warehouse_id, product_id, order_id, quantity) -> None:
    if get_stock(warehouse_id, product_id) is None:
        raise InsufficientStock(
            {"stock": [f"Product {product_id} is not stocked at warehouse {warehouse_id}"]}
        )
    update_with_retry(
        lambda: _load_stock(warehouse_id, product_id),
        lambda stock: stock.reserve(order_id, quantity),
    )


def release(warehouse_id, product_id, order_id) -> int:
    if get_stock(warehouse_id, product_id) is None:
        return 0
    return update_with_retry(
        lambda: _load_stock(warehouse_id, product_id),
        lambda stock: stock.release(order_id),
    )


def commit(warehouse_id, product_id, order_id) -> int:
    if get_stock(warehouse_id, product_id) is None:
        return 0
    return update_with_retry(
        lambda: _load_stock(warehouse_id, product_id),
        lambda stock: stock.commit(order_id),
    )


def can_fulfill(warehouse_id, lines) -> bool:
    return all(get_product_stock(warehouse_id, product_id) >= qty for product_id, qty in _totals(lines).items())


def select_warehouse(pincode, lines) -> Warehouse:
    """Pick the active warehouse serving ``pincode`` that can cover every line.

    Ties go to the lowest warehouse code so the choice is deterministic.
    """
    repo = current_domain.repository_for(Warehouse)
    candidates = sorted(
        (w for w in repo._dao.query.filter(is_active=True).all().items if w.serves(pincode)),
        key=lambda w: w.code,
    )
    for warehouse in candidates:
        if can_fulfill(warehouse.id, lines):
            return warehouse

    raise NoFulfillableWarehouse(
        {"items": [f"No warehouse serving pincode {pincode} can fulfill the whole order"]}
    )


def reserve_order(warehouse_id, order_id, lines) -> None:
    """Reserve every line of an order at one warehouse, or none of them."""
    totals = _totals(lines)
    for product_id, quantity in totals.items():
        available = get_product_stock(warehouse_id, product_id)
        if available < quantity:
            raise InsufficientStock(
                {
                    "stock": [
                        f"Insufficient stock for product {product_id}: requested {quantity}, available {available}"
                    ]
                }
            )

    reserved = []
    try:
        for product_id, quantity in totals.items():
            reserve(warehouse_id, product_id, order_id, quantity)
            reserved.append(product_id)
    except Exception:
        for product_id in reserved:
            release(warehouse_id, product_id, order_id)
        raise

    logger.info("order_stock_reserved", order_id=order_id, warehouse_id=warehouse_id, lines=len(totals))


def release_order(warehouse_id, order_id, product_ids) -> int:
    released = sum(release(warehouse_id, product_id, order_id) for product_id in set(product_ids))
    logger.info("order_stock_released", order_id=order_id, warehouse_id=warehouse_id, units=released)
    return released


def commit_order(warehouse_id, order_id, product_ids) -> int:
    committed = sum(commit(warehouse_id, product_id, order_id) for product_id in set(product_ids))
    logger.info("order_stock_committed", order_id=order_id, warehouse_id=warehouse_id, units=committed)
    return committed
