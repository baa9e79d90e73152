"""Payment application — commands and handler.

``ApplyVerifiedPayment`` is the one entry point for gateway confirmations,
whatever the transport (webhook, client redirect or status poll). It is
idempotent. The order's ``payment_applied`` flag guarantees that stock,
reward and agent side effects happen once, however often the same
confirmation is replayed.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import InsufficientBalance, InsufficientStock, NoFulfillableWarehouse
from checkout.order.order import InventoryState, Order, PaymentMethod, PaymentStatus
from checkout.order.placement import (
    bnpl_plan_for,
    bnpl_reference_for,
    start_gateway_payment,
    validate_payment_method,
)
from checkout.order.settlement import accept_order, award_points, compensate
from checkout.payment.gateway import get_gateway
from checkout.pincode.serviceability import check_serviceability
from checkout.rewards import service as rewards

ABANDONED_AFTER_MINUTES = 30


class PaymentOutcome(Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    FAILED = "failed"
    REFUNDED = "refunded"


@checkout.command(part_of="Order")
class ApplyVerifiedPayment:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=100)
    transaction_id = String(required=True, max_length=100)
    signature = String(required=True, max_length=500)


@checkout.command(part_of="Order")
class RetryPayment:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@checkout.command(part_of="Order")
class SwitchPaymentMethod:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)
    bnpl_provider = String(max_length=50)
    bnpl_reference = String(max_length=100)


@checkout.command(part_of="Order")
class RecordCodCollection:
    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class ExpireAbandonedPayments:
    older_than_minutes = Integer(default=ABANDONED_AFTER_MINUTES, min_value=1)


def load_owned_order(order_id, customer_id) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if order.customer_id != customer_id:
        raise ValidationError({"customer_id": ["Order does not belong to this customer"]})
    return order


def refund_and_cancel(order, reason):
    """Give the money back for a payment the order can no longer honour."""
    refund = get_gateway().refund(order.payment_result.transaction_id, order.total_price)
    compensate(
        order.customer_id,
        order.id,
        warehouse_id=order.fulfillment_warehouse_id,
        product_ids=[p for p, _ in order.product_lines],
    )
    if order.inventory_state == InventoryState.RESERVED.value:
        order.record_inventory_released()
    order.cancel(reason)
    if refund.success:
        order.record_refund(refund.gateway_refund_id)
    else:
        logger.error("refund_failed", order_id=order.id, reason=refund.failure_reason)


@checkout.command_handler(part_of=Order)
class PaymentHandler:
    @handle(ApplyVerifiedPayment)
    def apply_verified_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if order.payment_applied and order.gateway_order_id == command.gateway_order_id:
            replay = order.payment_result.transaction_id == command.transaction_id
            logger.info(
                "payment_already_applied",
                order_id=order.id,
                transaction_id=command.transaction_id,
                replay=replay,
            )
            return PaymentOutcome.ALREADY_APPLIED.value

        gateway = get_gateway()
        verified = order.issued_gateway_order(command.gateway_order_id) and gateway.verify_signature(
            command.gateway_order_id, command.transaction_id, command.signature
        )

        if not verified:
            if order.awaiting_gateway_payment:
                order.record_payment_failure("Payment signature verification failed")
                rewards.release_redemption(order.customer_id, order.id)
                repo.add(order)
            logger.warning("payment_verification_failed", order_id=order.id, transaction_id=command.transaction_id)
            return PaymentOutcome.FAILED.value

        if not order.awaiting_gateway_payment:
            # Expired, switched to another method or already paid: return the money
            refund = gateway.refund(command.transaction_id, order.total_price)
            logger.warning(
                "unexpected_payment_refunded",
                order_id=order.id,
                transaction_id=command.transaction_id,
                payment_status=order.payment_status,
                refunded=refund.success,
            )
            return PaymentOutcome.REFUNDED.value

        order.apply_gateway_payment(command.gateway_order_id, command.transaction_id)
        try:
            accept_order(order)
        except (InsufficientStock, NoFulfillableWarehouse, InsufficientBalance) as exc:
            logger.error("paid_order_unfulfillable", order_id=order.id, reason=exc.messages)
            refund_and_cancel(order, "Items became unavailable before payment completed")
            repo.add(order)
            return PaymentOutcome.REFUNDED.value

        repo.add(order)
        logger.info("payment_applied", order_id=order.id, transaction_id=command.transaction_id)
        return PaymentOutcome.APPLIED.value

    @handle(RetryPayment)
    def retry_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = load_owned_order(command.order_id, command.customer_id)
        if order.payment_status != PaymentStatus.AWAITING_PAYMENT.value:
            raise ValidationError({"payment_status": ["Only orders awaiting payment can be retried"]})

        if order.redeemed_points:
            # The discount is part of the fixed total, so the points must still be there
            rewards.redeem_points(order.customer_id, order.id, order.redeemed_points)
        gateway_order = start_gateway_payment(order)
        repo.add(order)
        return gateway_order.gateway_order_id if gateway_order else None

    @handle(SwitchPaymentMethod)
    def switch_payment_method(self, command):
        repo = current_domain.repository_for(Order)
        order = load_owned_order(command.order_id, command.customer_id)
        payment_method = validate_payment_method(command.payment_method)

        bnpl_plan = None
        if payment_method == PaymentMethod.BNPL.value:
            bnpl_plan = bnpl_plan_for(command.bnpl_provider, order.total_price)
        if payment_method == PaymentMethod.COD.value:
            if not check_serviceability(order.shipping_address.pincode).cod_available:
                raise ValidationError(
                    {"payment_method": [f"Cash on delivery is not available for pincode {order.shipping_address.pincode}"]}
                )

        order.switch_payment_method(payment_method, bnpl_plan)
        try:
            if payment_method == PaymentMethod.COD.value:
                order.await_delivery_payment()
            else:
                order.approve_bnpl(bnpl_reference_for(order.id, command.bnpl_reference))
            accept_order(order)
        except Exception:
            compensate(
                order.customer_id,
                order.id,
                warehouse_id=order.fulfillment_warehouse_id,
                product_ids=[p for p, _ in order.product_lines],
            )
            raise

        repo.add(order)
        logger.info("payment_method_switched", order_id=order.id, payment_method=payment_method)

    @handle(RecordCodCollection)
    def record_cod_collection(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_cod_collection()
        award_points(order)
        repo.add(order)
        logger.info("cod_collected", order_id=order.id, amount=order.total_price)

    @handle(ExpireAbandonedPayments)
    def expire_abandoned_payments(self, command):
        repo = current_domain.repository_for(Order)
        cutoff = datetime.now(UTC) - timedelta(minutes=command.older_than_minutes or ABANDONED_AFTER_MINUTES)
        stale = [
            o
            for o in repo._dao.query.filter(payment_status=PaymentStatus.AWAITING_PAYMENT.value).all().items
            if o.updated_at is not None and _as_utc(o.updated_at) < cutoff
        ]

        for order in stale:
            rewards.release_redemption(order.customer_id, order.id)
            order.cancel("Payment was not completed in time")
            repo.add(order)

        if stale:
            logger.info("abandoned_payments_expired", count=len(stale))
        return len(stale)


def _as_utc(value):
    return value if value.tzinfo else value.replace(tzinfo=UTC)
