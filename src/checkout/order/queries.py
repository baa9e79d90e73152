"""Read-side helpers over persisted orders."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.order.order import Order


def _newest_first(orders):
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def get_order(order_id, customer_id=None) -> Order:
    """Load an order; when ``customer_id`` is given, only its owner may see it."""
    order = current_domain.repository_for(Order).get(order_id)
    if customer_id is not None and order.customer_id != customer_id:
        raise ObjectNotFoundError(f"Order {order_id} not found")
    return order


def list_orders_for_user(customer_id) -> list[Order]:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(customer_id=customer_id).all().items)


def list_orders_for_agent(agent_id, include_delivered=True) -> list[Order]:
    query = current_domain.repository_for(Order)._dao.query.filter(delivery_agent_id=agent_id)
    if not include_delivered:
        query = query.filter(is_delivered=False)
    return _newest_first(query.all().items)


def list_orders_by_status(status) -> list[Order]:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(status=status).all().items)
