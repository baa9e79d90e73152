"""Payment gateway port (abstract interface).

Checkout only needs three things from a gateway: open an order the client
can pay against, tell whether a signed payment callback is genuine, and
refund a captured payment. Signature checking is opaque to the domain; it
only ever sees the boolean.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class GatewayOrder:
    """A payable order opened on the gateway side."""

    gateway_order_id: str
    amount: float
    currency: str
    receipt: str


@dataclass(frozen=True)
class RefundResult:
    success: bool
    gateway_refund_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present; orders cannot be opened without them."""
        ...

    @abstractmethod
    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        """Open a gateway order for ``amount``. ``receipt`` is our order id."""
        ...

    @abstractmethod
    def verify_signature(self, gateway_order_id: str, transaction_id: str, signature: str) -> bool:
        ...

    @abstractmethod
    def refund(self, transaction_id: str, amount: float) -> RefundResult:
        ...
