"""Delivery agent administration — commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.delivery.agent import DeliveryAgent
from checkout.domain import checkout


def _decode_pincodes(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else list(value)


@checkout.command(part_of="DeliveryAgent")
class RegisterDeliveryAgent:
    name = String(required=True, max_length=100)
    email = String(max_length=255)
    phone = String(max_length=15)
    assigned_area = String(max_length=100)
    assigned_pincodes = Text()  # JSON list of pincodes


@checkout.command(part_of="DeliveryAgent")
class UpdateAgentCoverage:
    agent_id = Identifier(required=True)
    assigned_area = String(max_length=100)
    assigned_pincodes = Text()  # JSON list of pincodes


@checkout.command(part_of="DeliveryAgent")
class DeactivateDeliveryAgent:
    agent_id = Identifier(required=True)


@checkout.command_handler(part_of=DeliveryAgent)
class DeliveryAgentManagementHandler:
    @handle(RegisterDeliveryAgent)
    def register_agent(self, command):
        agent = DeliveryAgent.register(
            name=command.name,
            email=command.email,
            phone=command.phone,
            assigned_area=command.assigned_area,
            assigned_pincodes=_decode_pincodes(command.assigned_pincodes),
        )
        current_domain.repository_for(DeliveryAgent).add(agent)
        return str(agent.id)

    @handle(UpdateAgentCoverage)
    def update_coverage(self, command):
        repo = current_domain.repository_for(DeliveryAgent)
        agent = repo.get(command.agent_id)
        agent.update_coverage(
            assigned_area=command.assigned_area,
            assigned_pincodes=_decode_pincodes(command.assigned_pincodes),
        )
        repo.add(agent)

    @handle(DeactivateDeliveryAgent)
    def deactivate_agent(self, command):
        repo = current_domain.repository_for(DeliveryAgent)
        agent = repo.get(command.agent_id)
        agent.deactivate()
        repo.add(agent)
