"""DeliveryAgent aggregate — a courier with a coverage area and a running load.

``active_orders`` counts orders assigned but not yet delivered and is what
assignment balances on. The counters are bookkeeping: a rare double count
from concurrent assignment is tolerated and corrected by reassignment.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from checkout.delivery.events import (
    AgentCoverageUpdated,
    DeliveryAgentDeactivated,
    DeliveryAgentRegistered,
)
from checkout.domain import checkout
from checkout.pincode.pincode import validate_pincode


def normalize_area(area) -> str:
    return (area or "").strip().lower()


def _normalize_pincodes(pincodes):
    return sorted({validate_pincode(p, field="assigned_pincodes") for p in pincodes or []})


@checkout.aggregate
class DeliveryAgent:
    name = String(required=True, max_length=100)
    email = String(max_length=255)
    phone = String(max_length=15)
    assigned_area = String(max_length=100)
    assigned_pincodes = Text(default="[]")  # JSON list of pincodes
    is_active = Boolean(default=True)
    active_orders = Integer(default=0, min_value=0)
    total_delivered = Integer(default=0, min_value=0)
    total_assigned = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, assigned_area=None, assigned_pincodes=None, email=None, phone=None):
        now = datetime.now(UTC)
        agent = cls(
            name=name,
            email=email,
            phone=phone,
            assigned_area=assigned_area.strip() if assigned_area else None,
            assigned_pincodes=json.dumps(_normalize_pincodes(assigned_pincodes)),
            created_at=now,
            updated_at=now,
        )
        agent.raise_(
            DeliveryAgentRegistered(
                agent_id=str(agent.id),
                name=name,
                assigned_area=agent.assigned_area,
                assigned_pincodes=agent.assigned_pincodes,
                registered_at=now,
            )
        )
        return agent

    @property
    def pincodes(self) -> list[str]:
        return json.loads(self.assigned_pincodes or "[]")

    def covers_pincode(self, pincode) -> bool:
        return pincode in self.pincodes

    def covers_city(self, city) -> bool:
        area = normalize_area(self.assigned_area)
        return bool(area) and area == normalize_area(city)

    def update_coverage(self, assigned_area=None, assigned_pincodes=None):
        if assigned_area is not None:
            self.assigned_area = assigned_area.strip()
        if assigned_pincodes is not None:
            self.assigned_pincodes = json.dumps(_normalize_pincodes(assigned_pincodes))
        self.updated_at = datetime.now(UTC)

        self.raise_(
            AgentCoverageUpdated(
                agent_id=str(self.id),
                assigned_area=self.assigned_area,
                assigned_pincodes=self.assigned_pincodes,
                updated_at=self.updated_at,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Delivery agent is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(DeliveryAgentDeactivated(agent_id=str(self.id), deactivated_at=self.updated_at))

    def record_assignment(self):
        self.active_orders += 1
        self.total_assigned += 1
        self.updated_at = datetime.now(UTC)

    def record_unassignment(self):
        self.active_orders = max(0, self.active_orders - 1)
        self.total_assigned = max(0, self.total_assigned - 1)
        self.updated_at = datetime.now(UTC)

    def record_delivery(self):
        self.active_orders = max(0, self.active_orders - 1)
        self.total_delivered += 1
        self.updated_at = datetime.now(UTC)

    def record_release(self):
        """An assigned order was cancelled before delivery."""
        self.active_orders = max(0, self.active_orders - 1)
        self.updated_at = datetime.now(UTC)
