"""Pincode aggregate — one record of the delivery serviceability index.

A pincode is keyed by its 6-digit postal code. Only active records are
consulted at checkout; deactivating a code takes it out of service without
losing its delivery settings.
"""

import re
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from checkout.domain import checkout
from checkout.pincode.events import (
    PincodeActivated,
    PincodeAdded,
    PincodeDeactivated,
    PincodeUpdated,
)

PINCODE_PATTERN = re.compile(r"[0-9]{6}")
DEFAULT_DELIVERY_DAYS = 3


def validate_pincode(code, field="pincode"):
    """Return ``code`` if it is exactly six ASCII digits, else raise ValidationError."""
    if not isinstance(code, str) or not PINCODE_PATTERN.fullmatch(code):
        raise ValidationError({field: [f"Pincode must be a 6-digit number, got '{code}'"]})
    return code


@checkout.aggregate
class Pincode:
    """A postal code with its delivery settings. The id is the code itself."""

    code = String(required=True, max_length=6)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    delivery_days = Integer(default=DEFAULT_DELIVERY_DAYS, min_value=1)
    cod_available = Boolean(default=True)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, code, city, state, delivery_days=None, cod_available=True):
        code = validate_pincode(code, field="code")
        now = datetime.now(UTC)
        pincode = cls(
            id=code,
            code=code,
            city=city.strip(),
            state=state.strip(),
            delivery_days=delivery_days or DEFAULT_DELIVERY_DAYS,
            cod_available=cod_available,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        pincode.raise_(
            PincodeAdded(
                code=code,
                city=pincode.city,
                state=pincode.state,
                delivery_days=pincode.delivery_days,
                cod_available=pincode.cod_available,
                added_at=now,
            )
        )
        return pincode

    def update_details(self, city=None, state=None, delivery_days=None, cod_available=None):
        if city is not None:
            self.city = city.strip()
        if state is not None:
            self.state = state.strip()
        if delivery_days is not None:
            self.delivery_days = delivery_days
        if cod_available is not None:
            self.cod_available = cod_available
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PincodeUpdated(
                code=self.code,
                city=self.city,
                state=self.state,
                delivery_days=self.delivery_days,
                cod_available=self.cod_available,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": [f"Pincode {self.code} is already inactive"]})
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(PincodeDeactivated(code=self.code, deactivated_at=now))

    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": [f"Pincode {self.code} is already active"]})
        now = datetime.now(UTC)
        self.is_active = True
        self.updated_at = now
        self.raise_(PincodeActivated(code=self.code, activated_at=now))
