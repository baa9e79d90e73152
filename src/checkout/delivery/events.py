"""Domain events for the DeliveryAgent aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from checkout.domain import checkout


@checkout.event(part_of="DeliveryAgent")
class DeliveryAgentRegistered:
    __version__ = 1

    agent_id = Identifier(required=True)
    name = String(required=True)
    assigned_area = String()
    assigned_pincodes = Text()  # JSON list
    registered_at = DateTime(required=True)


@checkout.event(part_of="DeliveryAgent")
class AgentCoverageUpdated:
    __version__ = 1

    agent_id = Identifier(required=True)
    assigned_area = String()
    assigned_pincodes = Text()  # JSON list
    updated_at = DateTime(required=True)


@checkout.event(part_of="DeliveryAgent")
class DeliveryAgentDeactivated:
    __version__ = 1

    agent_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
