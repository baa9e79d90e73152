"""Delivery assignment — matching orders to agents.

Preference order for an order shipping to (pincode, city):

1. active agents whose assigned pincodes include the pincode,
2. otherwise active agents whose area is the city (trimmed, case-insensitive),
3. otherwise nobody; the order stays unassigned.

Within the winning group the agent with the fewest active orders wins, then
the one with fewer total assignments, then the lowest id.
"""

from protean.utils.globals import current_domain

from checkout.delivery.agent import DeliveryAgent
from checkout.domain import logger


def _active_agents() -> list[DeliveryAgent]:
    repo = current_domain.repository_for(DeliveryAgent)
    return repo._dao.query.filter(is_active=True).all().items


def _least_loaded(agents):
    return min(agents, key=lambda a: (a.active_orders, a.total_assigned, str(a.id)))


def choose_agent(pincode, city) -> DeliveryAgent | None:
    agents = _active_agents()

    by_pincode = [a for a in agents if a.covers_pincode(pincode)]
    if by_pincode:
        return _least_loaded(by_pincode)

    by_city = [a for a in agents if a.covers_city(city)]
    if by_city:
        return _least_loaded(by_city)

    return None


def _adjust_load(agent_id, change):
    if not agent_id:
        return
    repo = current_domain.repository_for(DeliveryAgent)
    agent = repo.get(agent_id)
    change(agent)
    repo.add(agent)


def assign_order(order, agent=None) -> str | None:
    """Assign ``order`` to ``agent`` (or the best match) and update both sides' bookkeeping.

    Returns the agent id, or None when nobody covers the destination.
    """
    address = order.shipping_address
    if agent is None:
        agent = choose_agent(address.pincode, address.city)
    if agent is None:
        logger.warning("order_unassigned", order_id=order.id, pincode=address.pincode, city=address.city)
        return None

    if agent.id == order.delivery_agent_id:
        return agent.id

    previous = order.assign_agent(agent.id)
    _adjust_load(previous, lambda a: a.record_unassignment())
    _adjust_load(agent.id, lambda a: a.record_assignment())

    logger.info("order_assigned", order_id=order.id, agent_id=agent.id, previous_agent_id=previous)
    return agent.id


def release_order(order) -> None:
    """Drop a cancelled order from its agent's active load."""
    _adjust_load(order.delivery_agent_id, lambda a: a.record_release())


def record_delivery(order) -> None:
    _adjust_load(order.delivery_agent_id, lambda a: a.record_delivery())


def list_agents(active_only: bool = False) -> list[DeliveryAgent]:
    query = current_domain.repository_for(DeliveryAgent)._dao.query
    if active_only:
        query = query.filter(is_active=True)
    return sorted(query.all().items, key=lambda a: a.name)
