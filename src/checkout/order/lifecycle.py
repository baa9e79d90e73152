"""Order lifecycle — status advancement and cancellation."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.delivery import assignment
from checkout.domain import checkout, logger
from checkout.inventory import reservation
from checkout.order.order import InventoryState, Order, PaymentMethod
from checkout.order.settlement import award_points, unwind_order
from checkout.payment.gateway import get_gateway


@checkout.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = String(max_length=500)
    cod_collected = Boolean(default=False)


@checkout.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=255)
    customer_id = Identifier()  # Set when the customer cancels; absent for admin cancellations


@checkout.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(AdvanceOrderStatus)
    def advance_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.advance_status(command.status, command.note)

        if order.has_shipped and order.inventory_state == InventoryState.RESERVED.value:
            reservation.commit_order(order.fulfillment_warehouse_id, order.id, [p for p, _ in order.product_lines])
            order.record_inventory_committed()

        if order.is_delivered:
            if command.cod_collected and order.payment_method == PaymentMethod.COD.value and not order.is_paid:
                order.record_cod_collection()
            assignment.record_delivery(order)
            award_points(order)

        repo.add(order)
        logger.info("order_status_advanced", order_id=order.id, status=order.status)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.customer_id and order.customer_id != command.customer_id:
            raise ValidationError({"customer_id": ["Order does not belong to this customer"]})

        was_paid = order.is_paid
        order.cancel(command.reason)
        unwind_order(order)

        if was_paid and order.payment_method == PaymentMethod.GATEWAY.value and order.total_price > 0:
            refund = get_gateway().refund(order.payment_result.transaction_id, order.total_price)
            if refund.success:
                order.record_refund(refund.gateway_refund_id)
            else:
                logger.error("refund_failed", order_id=order.id, reason=refund.failure_reason)
        elif was_paid:
            # BNPL and fully-discounted reversals are settled with the provider out of band
            order.record_refund(f"reversal-{order.id}")

        repo.add(order)
        logger.info("order_cancelled", order_id=order.id, refunded=was_paid)
