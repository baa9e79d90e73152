"""Delivery agent assignment for orders — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from checkout.delivery import assignment
from checkout.delivery.agent import DeliveryAgent
from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class AssignDeliveryAgent:
    """Run automatic assignment for an order that has no agent yet."""

    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class ReassignDeliveryAgent:
    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)


@checkout.command_handler(part_of=Order)
class DeliveryDispatchHandler:
    @handle(AssignDeliveryAgent)
    def assign_agent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.delivery_agent_id:
            raise ValidationError({"delivery_agent_id": ["Order already has an agent; reassign instead"]})

        agent_id = assignment.assign_order(order)
        repo.add(order)
        return agent_id

    @handle(ReassignDeliveryAgent)
    def reassign_agent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        agent = current_domain.repository_for(DeliveryAgent).get(command.agent_id)
        if not agent.is_active:
            raise ValidationError({"agent_id": ["Cannot assign an inactive delivery agent"]})

        agent_id = assignment.assign_order(order, agent=agent)
        repo.add(order)
        return agent_id
