"""Domain events for the Pincode aggregate."""

from protean.fields import Boolean, DateTime, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Pincode")
class PincodeAdded:
    """A postal code became known to the serviceability index."""

    __version__ = 1

    code = String(required=True)
    city = String(required=True)
    state = String(required=True)
    delivery_days = Integer(required=True)
    cod_available = Boolean(required=True)
    added_at = DateTime(required=True)


@checkout.event(part_of="Pincode")
class PincodeUpdated:
    __version__ = 1

    code = String(required=True)
    city = String(required=True)
    state = String(required=True)
    delivery_days = Integer(required=True)
    cod_available = Boolean(required=True)


@checkout.event(part_of="Pincode")
class PincodeDeactivated:
    __version__ = 1

    code = String(required=True)
    deactivated_at = DateTime(required=True)


@checkout.event(part_of="Pincode")
class PincodeActivated:
    __version__ = 1

    code = String(required=True)
    activated_at = DateTime(required=True)
