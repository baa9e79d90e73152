"""Order notifications — reacts to Order events by messaging the customer."""

from protean.utils.mixins import handle

from checkout.domain import checkout
from checkout.notification.dispatcher import dispatch
from checkout.notification.templates import MessageKind
from checkout.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusAdvanced,
    PaymentConfirmed,
    ReturnRequestUpdated,
)
from checkout.order.order import Order, OrderStatus

_STATUS_MESSAGES = {
    OrderStatus.SHIPPED.value: MessageKind.ORDER_SHIPPED.value,
    OrderStatus.DELIVERED.value: MessageKind.ORDER_DELIVERED.value,
}


@checkout.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        dispatch(
            str(event.customer_id),
            MessageKind.ORDER_CONFIRMATION.value,
            {
                "order_id": str(event.order_id),
                "total_price": f"{event.total_price:.2f}",
                "estimated_delivery": str(event.estimated_delivery),
            },
        )

    @handle(PaymentConfirmed)
    def on_payment_confirmed(self, event: PaymentConfirmed) -> None:
        dispatch(
            str(event.customer_id),
            MessageKind.PAYMENT_RECEIVED.value,
            {
                "order_id": str(event.order_id),
                "amount": f"{event.amount:.2f}",
                "transaction_id": event.transaction_id,
            },
        )

    @handle(OrderStatusAdvanced)
    def on_status_advanced(self, event: OrderStatusAdvanced) -> None:
        kind = _STATUS_MESSAGES.get(event.status)
        if kind is None:
            return
        dispatch(str(event.customer_id), kind, {"order_id": str(event.order_id)})

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        dispatch(
            str(event.customer_id),
            MessageKind.ORDER_CANCELLED.value,
            {"order_id": str(event.order_id), "reason": event.reason},
        )

    @handle(ReturnRequestUpdated)
    def on_return_updated(self, event: ReturnRequestUpdated) -> None:
        dispatch(
            str(event.customer_id),
            MessageKind.RETURN_UPDATE.value,
            {
                "order_id": str(event.order_id),
                "request_type": event.request_type.lower(),
                "status": event.status,
                "admin_comment": event.admin_comment or "",
            },
        )
