"""Serviceability lookups against the pincode index.

These are pure reads: checkout calls ``require_serviceable`` before touching
payment, rewards or inventory, so an uncovered address fails with no side
effects.
"""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.errors import ServiceabilityError
from checkout.pincode.pincode import Pincode, validate_pincode


@dataclass(frozen=True)
class Serviceability:
    """Outcome of a serviceability check."""

    code: str
    serviceable: bool
    city: str | None = None
    state: str | None = None
    delivery_days: int | None = None
    cod_available: bool = False


def check_serviceability(code: str) -> Serviceability:
    """Look ``code`` up among active pincodes.

    Raises ValidationError for a malformed code. An unknown or inactive code
    yields ``serviceable=False`` rather than an error.
    """
    code = validate_pincode(code)
    try:
        pincode = current_domain.repository_for(Pincode).get(code)
    except ObjectNotFoundError:
        return Serviceability(code=code, serviceable=False)

    if not pincode.is_active:
        return Serviceability(code=code, serviceable=False)

    return Serviceability(
        code=code,
        serviceable=True,
        city=pincode.city,
        state=pincode.state,
        delivery_days=pincode.delivery_days,
        cod_available=pincode.cod_available,
    )


def require_serviceable(code: str) -> Serviceability:
    result = check_serviceability(code)
    if not result.serviceable:
        raise ServiceabilityError({"pincode": [f"Pincode {result.code} is not serviceable"]})
    return result


def list_pincodes(active_only: bool = False) -> list:
    query = current_domain.repository_for(Pincode)._dao.query
    if active_only:
        query = query.filter(is_active=True)
    return sorted(query.all().items, key=lambda p: p.code)
