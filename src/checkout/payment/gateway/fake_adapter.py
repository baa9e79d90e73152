"""Configurable fake payment gateway for development and testing.

Simulates the gateway without network calls. A signature is genuine when it
equals ``"valid-signature"``; tests and local clients can flip the adapter
into a misconfigured or refund-failing state with ``configure()``.
"""

from uuid import uuid4

from checkout.payment.gateway.port import GatewayOrder, PaymentGateway, RefundResult

VALID_SIGNATURE = "valid-signature"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.configured: bool = True
        self.refunds_succeed: bool = True
        self.failure_reason: str = "Refund declined"
        self.calls: list[dict] = []

    def configure(
        self,
        configured: bool = True,
        refunds_succeed: bool = True,
        failure_reason: str = "Refund declined",
    ) -> None:
        self.configured = configured
        self.refunds_succeed = refunds_succeed
        self.failure_reason = failure_reason

    def is_configured(self) -> bool:
        return self.configured

    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        self.calls.append({"method": "create_order", "amount": amount, "currency": currency, "receipt": receipt})
        return GatewayOrder(
            gateway_order_id=f"fake_order_{uuid4().hex[:12]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def verify_signature(self, gateway_order_id: str, transaction_id: str, signature: str) -> bool:
        self.calls.append(
            {
                "method": "verify_signature",
                "gateway_order_id": gateway_order_id,
                "transaction_id": transaction_id,
            }
        )
        return signature == VALID_SIGNATURE

    def refund(self, transaction_id: str, amount: float) -> RefundResult:
        self.calls.append({"method": "refund", "transaction_id": transaction_id, "amount": amount})
        if self.refunds_succeed:
            return RefundResult(success=True, gateway_refund_id=f"fake_rfnd_{uuid4().hex[:12]}")
        return RefundResult(success=False, failure_reason=self.failure_reason)
