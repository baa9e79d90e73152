"""Message templates for order notifications."""

from dataclasses import dataclass
from enum import Enum


class MessageKind(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    PAYMENT_RECEIVED = "PaymentReceived"
    ORDER_SHIPPED = "OrderShipped"
    ORDER_DELIVERED = "OrderDelivered"
    ORDER_CANCELLED = "OrderCancelled"
    RETURN_UPDATE = "ReturnUpdate"


@dataclass(frozen=True)
class Template:
    subject: str
    body: str
    channels: tuple[str, ...] = ("Email", "WhatsApp")

    def render(self, context: dict) -> tuple[str, str]:
        return self.subject.format(**context), self.body.format(**context)


TEMPLATES = {
    MessageKind.ORDER_CONFIRMATION.value: Template(
        subject="Order {order_id} confirmed",
        body="Thank you for your order. Total payable: {total_price}. Estimated delivery: {estimated_delivery}.",
    ),
    MessageKind.PAYMENT_RECEIVED.value: Template(
        subject="Payment received for order {order_id}",
        body="We received your payment of {amount}. Transaction reference: {transaction_id}.",
        channels=("Email",),
    ),
    MessageKind.ORDER_SHIPPED.value: Template(
        subject="Order {order_id} has shipped",
        body="Your jewellery is on its way.",
        channels=("Email", "WhatsApp", "Push"),
    ),
    MessageKind.ORDER_DELIVERED.value: Template(
        subject="Order {order_id} delivered",
        body="Your order was delivered. We hope you love it.",
        channels=("Email", "WhatsApp", "Push"),
    ),
    MessageKind.ORDER_CANCELLED.value: Template(
        subject="Order {order_id} cancelled",
        body="Your order was cancelled: {reason}.",
    ),
    MessageKind.RETURN_UPDATE.value: Template(
        subject="Update on your {request_type} request for order {order_id}",
        body="Your {request_type} request is now {status}. {admin_comment}",
    ),
}


def get_template(kind: str) -> Template:
    try:
        return TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unknown message kind: {kind}") from None
