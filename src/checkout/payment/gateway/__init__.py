"""Payment gateway factory.

``get_gateway()`` returns the process-wide adapter, chosen by the
``PAYMENT_GATEWAY`` environment variable (only ``fake`` ships here).
``set_gateway()`` / ``reset_gateway()`` let tests swap it.
"""

import os

from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.payment.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PAYMENT_GATEWAY", "fake")
        if adapter != "fake":
            raise ValueError(f"Unknown payment gateway adapter: {adapter}")
        _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
