"""Error taxonomy for the checkout flow.

Every recoverable or fatal checkout failure is a protean ``ValidationError``
carrying a ``{field: [message]}`` dict, so the HTTP layer maps all of them to
400 responses. Conditions that reflect infrastructure state rather than bad
input derive from ``InvalidOperationError`` instead.
"""

from protean.exceptions import InvalidOperationError, ValidationError


class ServiceabilityError(ValidationError):
    """The destination pincode is not covered for delivery."""


class InsufficientBalance(ValidationError):
    """More reward points were requested than the ledger holds."""


class BelowMinimum(ValidationError):
    """A redemption below the minimum redeemable block."""


class InsufficientStock(ValidationError):
    """A warehouse cannot cover the requested quantity."""


class NoFulfillableWarehouse(ValidationError):
    """No active warehouse serves the pincode with stock for every line."""


class PaymentVerificationFailed(ValidationError):
    """The gateway did not vouch for the payment attempt."""


class ProviderNotSelected(ValidationError):
    """A BNPL checkout without a provider."""


class GatewayMisconfigured(InvalidOperationError):
    """The payment gateway has no usable credentials."""
