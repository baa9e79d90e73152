"""Warehouse aggregate — a fulfillment location and the pincodes it ships to."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text

from checkout.domain import checkout
from checkout.inventory.events import (
    ServiceablePincodesUpdated,
    WarehouseDeactivated,
    WarehouseRegistered,
)
from checkout.pincode.pincode import validate_pincode


def _normalize_pincodes(pincodes):
    return sorted({validate_pincode(p, field="serviceable_pincodes") for p in pincodes or []})


@checkout.aggregate
class Warehouse:
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=255)
    address = String(max_length=500)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    pincode = String(max_length=6)
    manager = String(max_length=255)
    serviceable_pincodes = Text(default="[]")  # JSON list of pincodes
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        code,
        name,
        city,
        state=None,
        address=None,
        pincode=None,
        manager=None,
        serviceable_pincodes=None,
    ):
        now = datetime.now(UTC)
        pincodes = _normalize_pincodes(serviceable_pincodes)
        warehouse = cls(
            code=code.strip().upper(),
            name=name,
            address=address,
            city=city,
            state=state,
            pincode=validate_pincode(pincode) if pincode else None,
            manager=manager,
            serviceable_pincodes=json.dumps(pincodes),
            created_at=now,
            updated_at=now,
        )
        warehouse.raise_(
            WarehouseRegistered(
                warehouse_id=str(warehouse.id),
                code=warehouse.code,
                name=name,
                city=city,
                serviceable_pincodes=warehouse.serviceable_pincodes,
                registered_at=now,
            )
        )
        return warehouse

    @property
    def pincodes(self) -> list[str]:
        return json.loads(self.serviceable_pincodes or "[]")

    def serves(self, pincode) -> bool:
        return self.is_active and pincode in self.pincodes

    def update_serviceable_pincodes(self, pincodes):
        now = datetime.now(UTC)
        self.serviceable_pincodes = json.dumps(_normalize_pincodes(pincodes))
        self.updated_at = now
        self.raise_(
            ServiceablePincodesUpdated(
                warehouse_id=str(self.id),
                serviceable_pincodes=self.serviceable_pincodes,
                updated_at=now,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"warehouse": ["Warehouse is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseDeactivated(
                warehouse_id=str(self.id),
                deactivated_at=self.updated_at,
            )
        )
