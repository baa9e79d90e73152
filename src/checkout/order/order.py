"""Order aggregate (CQRS) — the record a checkout produces.

An order freezes everything the customer agreed to at checkout: line items
with name/price/image snapshots, the shipping address, the reward discount,
and a single ``total_price`` that is never recomputed. Two state machines run
side by side:

Payment (per payment method):
    COD:      Created → AwaitingDeliveryPayment → Paid (cash collected)
    Gateway:  Created → AwaitingPayment → Paid
              (a failed attempt leaves it AwaitingPayment; a payment on any
              attempt issued for the order counts)
    BNPL:     Created → Paid (provider acknowledgment)
    Any unpaid order can end Cancelled; a paid one that is cancelled ends Refunded.

Fulfillment (externally driven, monotonic):
    Pending → Confirmed → Processing → Shipped → Delivered
    Cancelled is reachable from any state before Shipped.

Payment-method details form a discriminated union. ``bnpl_plan`` exists only
for BNPL orders and ``gateway_order_id`` only for gateway orders. Gift
details are always present, defaulting to "not a gift".
"""

import re
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from checkout.domain import checkout
from checkout.order.events import (
    DeliveryAgentAssigned,
    OrderCancelled,
    OrderPlaced,
    OrderRefunded,
    OrderStatusAdvanced,
    PaymentAttemptFailed,
    PaymentAwaited,
    PaymentConfirmed,
    PaymentMethodSwitched,
    ReturnRequested,
    ReturnRequestUpdated,
)
from checkout.payment.bnpl import BnplProvider


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    COD = "Cash on Delivery"
    GATEWAY = "Gateway"
    BNPL = "BNPL"


class PaymentStatus(Enum):
    CREATED = "Created"
    AWAITING_PAYMENT = "AwaitingPayment"
    AWAITING_DELIVERY_PAYMENT = "AwaitingDeliveryPayment"
    PAID = "Paid"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class InventoryState(Enum):
    UNRESERVED = "Unreserved"
    RESERVED = "Reserved"
    COMMITTED = "Committed"
    RELEASED = "Released"


class WrappingType(Enum):
    STANDARD = "Standard"
    PREMIUM = "Premium"
    LUXURY_BOX = "Luxury Box"


class ReturnType(Enum):
    RETURN = "Return"
    EXCHANGE = "Exchange"


class ReturnStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class BnplStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"


# Cancelled ranks after every linear state so a cancellation entry never
# breaks the ordering of the history.
_LIFECYCLE_RANK = {
    OrderStatus.PENDING.value: 0,
    OrderStatus.CONFIRMED.value: 1,
    OrderStatus.PROCESSING.value: 2,
    OrderStatus.SHIPPED.value: 3,
    OrderStatus.DELIVERED.value: 4,
    OrderStatus.CANCELLED.value: 5,
}

_LINEAR_STATES = {
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
}

# Payment must have settled (or be deferred to the doorstep) before goods move
_SHIPPABLE_PAYMENT_STATES = {
    PaymentStatus.PAID.value,
    PaymentStatus.AWAITING_DELIVERY_PAYMENT.value,
}

PHONE_PATTERN = re.compile(r"[0-9]{10}")
PINCODE_PATTERN = re.compile(r"[0-9]{6}")


def lifecycle_rank(status) -> int:
    return _LIFECYCLE_RANK[status]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, frozen at checkout."""

    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=15)
    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    pincode = String(required=True, max_length=6)
    country = String(max_length=100, default="India")

    @invariant.post
    def contact_fields_must_be_well_formed(self):
        errors = {}
        if self.pincode and not PINCODE_PATTERN.fullmatch(self.pincode):
            errors["pincode"] = [f"Pincode must be a 6-digit number, got '{self.pincode}'"]
        if self.phone and not PHONE_PATTERN.fullmatch(self.phone):
            errors["phone"] = ["Phone number must have exactly 10 digits"]
        if errors:
            raise ValidationError(errors)


@checkout.value_object(part_of="Order")
class PaymentResult:
    transaction_id = String(required=True, max_length=100)
    status = String(required=True, max_length=50)
    provider = String(max_length=50)
    updated_at = DateTime(required=True)


@checkout.value_object(part_of="Order")
class RewardRedemption:
    points = Integer(required=True, min_value=0)
    discount_amount = Float(required=True, min_value=0.0)


@checkout.value_object(part_of="Order")
class BnplPlan:
    provider = String(required=True, choices=BnplProvider)
    installments = Integer(required=True, min_value=1)
    installment_amount = Float(required=True)
    status = String(choices=BnplStatus, default=BnplStatus.PENDING.value)
    reference = String(max_length=100)


@checkout.value_object(part_of="Order")
class GiftDetails:
    is_gift = Boolean(default=False)
    wrapping_type = String(choices=WrappingType)
    message = String(max_length=250)
    hide_price = Boolean(default=False)

    @invariant.post
    def gift_options_require_gift(self):
        if not self.is_gift and (self.wrapping_type or self.message or self.hide_price):
            raise ValidationError({"gift": ["Gift options can only be set on a gift order"]})


@checkout.value_object(part_of="Order")
class ReturnRequest:
    request_type = String(required=True, choices=ReturnType)
    reason = String(required=True, max_length=500)
    status = String(choices=ReturnStatus, default=ReturnStatus.PENDING.value)
    admin_comment = String(max_length=500)
    requested_at = DateTime(required=True)
    resolved_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderItem:
    """A line item with catalog values copied in at order time."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@checkout.entity(part_of="Order")
class StatusEntry:
    """One entry of the order timeline."""

    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    recorded_at = DateTime(required=True)
    sequence = Integer(required=True, min_value=0)


@checkout.entity(part_of="Order")
class GatewayAttempt:
    """A gateway order opened for this order. Money can still arrive on any of them."""

    gateway_order_id = String(required=True, max_length=100)
    attempt = Integer(required=True, min_value=1)
    opened_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)

    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.CREATED.value)
    payment_result = ValueObject(PaymentResult)
    gateway_order_id = String(max_length=100)
    gateway_attempts = HasMany(GatewayAttempt)
    bnpl_plan = ValueObject(BnplPlan)
    payment_attempts = Integer(default=0)
    last_payment_error = String(max_length=255)
    payment_applied = Boolean(default=False)
    is_paid = Boolean(default=False)
    paid_at = DateTime()

    items_price = Float(default=0.0)
    tax_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    total_price = Float(default=0.0)
    reward_redemption = ValueObject(RewardRedemption)
    gift = ValueObject(GiftDetails)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_history = HasMany(StatusEntry)
    estimated_delivery = Date()
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    delivery_agent_id = Identifier()
    fulfillment_warehouse_id = Identifier()
    inventory_state = String(choices=InventoryState, default=InventoryState.UNRESERVED.value)

    return_request = ValueObject(ReturnRequest)
    cancellation_reason = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # -- Invariants ---------------------------------------------------------
    @invariant.post
    def paid_order_must_have_payment_result(self):
        if self.is_paid and self.payment_result is None:
            raise ValidationError({"payment_result": ["A paid order must carry a payment result"]})

    @invariant.post
    def total_must_match_components(self):
        expected = round(
            (self.items_price or 0.0) - self.discount_amount + (self.tax_price or 0.0) + (self.shipping_price or 0.0),
            2,
        )
        if abs((self.total_price or 0.0) - expected) > 0.005:
            raise ValidationError({"total_price": [f"Total price must be {expected}, got {self.total_price}"]})

    @invariant.post
    def payment_details_must_match_method(self):
        is_bnpl = self.payment_method == PaymentMethod.BNPL.value
        if is_bnpl != (self.bnpl_plan is not None):
            raise ValidationError({"bnpl_plan": ["A BNPL plan is required for, and only for, BNPL orders"]})
        if self.gateway_order_id and self.payment_method != PaymentMethod.GATEWAY.value:
            raise ValidationError({"gateway_order_id": ["Only gateway orders carry a gateway order id"]})

    @invariant.post
    def status_history_must_not_regress(self):
        ranks = [lifecycle_rank(e.status) for e in sorted(self.status_history, key=lambda e: e.sequence)]
        if any(later < earlier for earlier, later in zip(ranks, ranks[1:], strict=False)):
            raise ValidationError({"status_history": ["Status history cannot move backwards"]})

    # -- Factory --------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_id,
        customer_id,
        lines,
        shipping_address,
        payment_method,
        delivery_days,
        tax_price=0.0,
        shipping_price=0.0,
        reward_redemption=None,
        bnpl_plan=None,
        gift=None,
        warehouse_id=None,
    ):
        """Record a new order.

        ``lines`` is a list of ``(ProductSnapshot, quantity)`` pairs. The
        snapshot values are copied into the order and never re-read.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        items_price = round(sum(snapshot.price * quantity for snapshot, quantity in lines), 2)
        discount = reward_redemption.discount_amount if reward_redemption else 0.0
        total_price = round(items_price - discount + tax_price + shipping_price, 2)

        order = cls(
            id=order_id,
            customer_id=customer_id,
            shipping_address=shipping_address,
            payment_method=payment_method,
            payment_status=PaymentStatus.CREATED.value,
            bnpl_plan=bnpl_plan,
            items_price=items_price,
            tax_price=tax_price,
            shipping_price=shipping_price,
            total_price=total_price,
            reward_redemption=reward_redemption,
            gift=gift or GiftDetails(is_gift=False),
            status=OrderStatus.PENDING.value,
            estimated_delivery=(now + timedelta(days=delivery_days)).date(),
            fulfillment_warehouse_id=warehouse_id,
            created_at=now,
            updated_at=now,
        )
        for snapshot, quantity in lines:
            order.add_items(
                OrderItem(
                    product_id=snapshot.product_id,
                    name=snapshot.name,
                    price=snapshot.price,
                    image=snapshot.image,
                    quantity=quantity,
                )
            )
        order._append_history(OrderStatus.PENDING.value, "Order placed", now)

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                customer_id=customer_id,
                payment_method=payment_method,
                items_count=sum(quantity for _, quantity in lines),
                items_price=items_price,
                discount_amount=discount,
                total_price=total_price,
                pincode=shipping_address.pincode,
                estimated_delivery=order.estimated_delivery,
                is_gift=order.gift.is_gift,
                placed_at=now,
            )
        )
        return order

    # -- Helpers --------------------------------------------------------------
    @property
    def discount_amount(self) -> float:
        return self.reward_redemption.discount_amount if self.reward_redemption else 0.0

    @property
    def redeemed_points(self) -> int:
        return self.reward_redemption.points if self.reward_redemption else 0

    @property
    def product_lines(self) -> list[tuple[str, int]]:
        return [(item.product_id, item.quantity) for item in self.items]

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    @property
    def awaiting_gateway_payment(self) -> bool:
        return (
            not self.is_cancelled
            and self.payment_method == PaymentMethod.GATEWAY.value
            and self.payment_status == PaymentStatus.AWAITING_PAYMENT.value
        )

    def issued_gateway_order(self, gateway_order_id) -> bool:
        return any(a.gateway_order_id == gateway_order_id for a in self.gateway_attempts)

    @property
    def has_shipped(self) -> bool:
        return not self.is_cancelled and lifecycle_rank(self.status) >= lifecycle_rank(OrderStatus.SHIPPED.value)

    @property
    def timeline(self) -> list:
        return sorted(self.status_history, key=lambda e: e.sequence)

    def _append_history(self, status, note, at):
        self.add_status_history(
            StatusEntry(status=status, note=note, recorded_at=at, sequence=len(self.status_history))
        )

    def _assert_payable(self):
        if self.is_cancelled:
            raise ValidationError({"status": ["Cannot take payment for a cancelled order"]})
        if self.payment_status != PaymentStatus.AWAITING_PAYMENT.value:
            raise ValidationError(
                {"payment_status": [f"Order is not awaiting payment (payment status {self.payment_status})"]}
            )

    # -- Payment --------------------------------------------------------------
    def await_gateway_payment(self, gateway_order_id):
        """Open a (new) gateway payment attempt."""
        if self.payment_method != PaymentMethod.GATEWAY.value:
            raise ValidationError({"payment_method": ["Only gateway orders can await gateway payment"]})
        if self.payment_status not in (PaymentStatus.CREATED.value, PaymentStatus.AWAITING_PAYMENT.value):
            raise ValidationError({"payment_status": [f"Cannot start a payment attempt from {self.payment_status}"]})
        if self.is_cancelled:
            raise ValidationError({"status": ["Cannot take payment for a cancelled order"]})

        now = datetime.now(UTC)
        self.gateway_order_id = gateway_order_id
        self.payment_status = PaymentStatus.AWAITING_PAYMENT.value
        self.payment_attempts += 1
        self.last_payment_error = None
        self.updated_at = now
        self.add_gateway_attempts(
            GatewayAttempt(gateway_order_id=gateway_order_id, attempt=self.payment_attempts, opened_at=now)
        )

        self.raise_(
            PaymentAwaited(
                order_id=self.id,
                customer_id=self.customer_id,
                gateway_order_id=gateway_order_id,
                amount=self.total_price,
                attempt=self.payment_attempts,
            )
        )

    def await_delivery_payment(self):
        if self.payment_method != PaymentMethod.COD.value:
            raise ValidationError({"payment_method": ["Only cash on delivery orders defer payment to delivery"]})
        self.payment_status = PaymentStatus.AWAITING_DELIVERY_PAYMENT.value
        self.updated_at = datetime.now(UTC)

    def mark_paid(self, transaction_id, provider, result_status="captured"):
        """Apply a confirmed payment exactly once.

        Returns False without touching the order when a payment was already
        applied, which makes replays of the same confirmation harmless.
        """
        if self.payment_applied:
            return False
        if self.is_cancelled:
            raise ValidationError({"status": ["Cannot take payment for a cancelled order"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_result = PaymentResult(
                transaction_id=transaction_id,
                status=result_status,
                provider=provider,
                updated_at=now,
            )
            self.is_paid = True
            self.paid_at = now
            self.payment_applied = True
            self.payment_status = PaymentStatus.PAID.value
            self.last_payment_error = None
        self.updated_at = now

        self.raise_(
            PaymentConfirmed(
                order_id=self.id,
                customer_id=self.customer_id,
                payment_method=self.payment_method,
                transaction_id=transaction_id,
                provider=provider,
                amount=self.total_price,
                paid_at=now,
            )
        )
        return True

    def apply_gateway_payment(self, gateway_order_id, transaction_id):
        """Take a verified payment made on any gateway order issued for this order.

        A payment on an earlier attempt still counts, so the attempt it came
        through becomes the order's gateway order.
        """
        if not self.awaiting_gateway_payment:
            raise ValidationError({"payment_status": ["Order is not collecting a gateway payment"]})
        if not self.issued_gateway_order(gateway_order_id):
            raise ValidationError(
                {"gateway_order_id": [f"Gateway order {gateway_order_id} was not issued for this order"]}
            )
        self.gateway_order_id = gateway_order_id
        return self.mark_paid(transaction_id, PaymentMethod.GATEWAY.value)

    def record_payment_failure(self, reason):
        self._assert_payable()
        now = datetime.now(UTC)
        self.last_payment_error = reason
        self.updated_at = now

        self.raise_(
            PaymentAttemptFailed(
                order_id=self.id,
                customer_id=self.customer_id,
                reason=reason,
                attempt=self.payment_attempts,
                failed_at=now,
            )
        )

    def approve_bnpl(self, reference):
        """Record the provider's synchronous approval as the payment."""
        if self.payment_method != PaymentMethod.BNPL.value:
            raise ValidationError({"payment_method": ["Only BNPL orders can be approved by a BNPL provider"]})

        if self.payment_applied:
            return False

        self.bnpl_plan = BnplPlan(
            provider=self.bnpl_plan.provider,
            installments=self.bnpl_plan.installments,
            installment_amount=self.bnpl_plan.installment_amount,
            status=BnplStatus.APPROVED.value,
            reference=reference,
        )
        return self.mark_paid(reference, self.bnpl_plan.provider, result_status="completed")

    def record_cod_collection(self):
        if self.payment_method != PaymentMethod.COD.value:
            raise ValidationError({"payment_method": ["Cash can only be collected for cash on delivery orders"]})
        if self.payment_applied:
            raise ValidationError({"payment_status": ["Payment for this order was already received"]})
        self.mark_paid(f"cod-{self.id}", PaymentMethod.COD.value, result_status="collected")

    def switch_payment_method(self, payment_method, bnpl_plan=None):
        """Move an unpaid gateway order to COD or BNPL."""
        self._assert_payable()
        if payment_method == self.payment_method:
            raise ValidationError({"payment_method": [f"Order already uses {payment_method}"]})
        if payment_method == PaymentMethod.GATEWAY.value:
            raise ValidationError({"payment_method": ["Use a payment retry to pay through the gateway again"]})

        previous = self.payment_method
        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_method = payment_method
            self.bnpl_plan = bnpl_plan if payment_method == PaymentMethod.BNPL.value else None
            self.gateway_order_id = None
            self.payment_status = PaymentStatus.CREATED.value
            self.last_payment_error = None
        self.updated_at = now

        self.raise_(
            PaymentMethodSwitched(
                order_id=self.id,
                previous_method=previous,
                payment_method=payment_method,
                switched_at=now,
            )
        )

    def record_refund(self, refund_id):
        if not self.is_paid:
            raise ValidationError({"payment_status": ["Only a paid order can be refunded"]})
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = now

        self.raise_(
            OrderRefunded(
                order_id=self.id,
                customer_id=self.customer_id,
                refund_id=refund_id,
                amount=self.total_price,
                refunded_at=now,
            )
        )

    # -- Inventory bookkeeping -----------------------------------------------
    def record_inventory_reserved(self, warehouse_id):
        self.fulfillment_warehouse_id = warehouse_id
        self.inventory_state = InventoryState.RESERVED.value

    def record_inventory_committed(self):
        self.inventory_state = InventoryState.COMMITTED.value

    def record_inventory_released(self):
        self.inventory_state = InventoryState.RELEASED.value

    # -- Delivery -------------------------------------------------------------
    def assign_agent(self, agent_id):
        if self.is_cancelled:
            raise ValidationError({"delivery_agent_id": ["Cannot assign an agent to a cancelled order"]})
        if self.has_shipped:
            raise ValidationError({"delivery_agent_id": ["Agents can only be changed before the order ships"]})

        previous = self.delivery_agent_id
        now = datetime.now(UTC)
        self.delivery_agent_id = agent_id
        self.updated_at = now

        self.raise_(
            DeliveryAgentAssigned(
                order_id=self.id,
                agent_id=agent_id,
                previous_agent_id=previous,
                assigned_at=now,
            )
        )
        return previous

    # -- Lifecycle ------------------------------------------------------------
    def advance_status(self, target, note=None):
        if target not in _LINEAR_STATES:
            raise ValidationError({"status": [f"'{target}' is not a lifecycle status an order can advance to"]})
        if self.is_cancelled:
            raise ValidationError({"status": ["A cancelled order cannot change status"]})
        if lifecycle_rank(target) <= lifecycle_rank(self.status):
            raise ValidationError({"status": [f"Cannot transition from {self.status} to {target}"]})
        if (
            lifecycle_rank(target) >= lifecycle_rank(OrderStatus.SHIPPED.value)
            and self.payment_status not in _SHIPPABLE_PAYMENT_STATES
        ):
            raise ValidationError({"payment_status": [f"Cannot ship an order whose payment is {self.payment_status}"]})

        previous = self.status
        now = datetime.now(UTC)
        self.status = target
        self._append_history(target, note, now)
        if target == OrderStatus.DELIVERED.value:
            self.is_delivered = True
            self.delivered_at = now
        self.updated_at = now

        self.raise_(
            OrderStatusAdvanced(
                order_id=self.id,
                customer_id=self.customer_id,
                previous_status=previous,
                status=target,
                note=note,
                advanced_at=now,
            )
        )

    def cancel(self, reason):
        if self.is_cancelled:
            raise ValidationError({"status": ["Order is already cancelled"]})
        if self.has_shipped:
            raise ValidationError({"status": [f"Cannot cancel an order that is {self.status}"]})

        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        if not self.is_paid:
            self.payment_status = PaymentStatus.CANCELLED.value
        self._append_history(OrderStatus.CANCELLED.value, reason, now)
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=self.id,
                customer_id=self.customer_id,
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -- Returns --------------------------------------------------------------
    def request_return(self, request_type, reason):
        if not self.is_delivered:
            raise ValidationError({"return_request": ["Returns can only be requested for delivered orders"]})
        if self.return_request is not None:
            raise ValidationError({"return_request": ["A return or exchange was already requested for this order"]})
        if request_type not in {t.value for t in ReturnType}:
            raise ValidationError({"request_type": [f"Request type must be Return or Exchange, got '{request_type}'"]})
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError({"reason": ["A reason is required"]})

        now = datetime.now(UTC)
        self.return_request = ReturnRequest(
            request_type=request_type,
            reason=reason,
            status=ReturnStatus.PENDING.value,
            requested_at=now,
        )
        self.updated_at = now

        self.raise_(
            ReturnRequested(
                order_id=self.id,
                customer_id=self.customer_id,
                request_type=request_type,
                reason=reason,
                requested_at=now,
            )
        )

    def _update_return(self, expected_statuses, new_status, admin_comment=None):
        request = self.return_request
        if request is None:
            raise ValidationError({"return_request": ["No return or exchange has been requested"]})
        if request.status not in expected_statuses:
            raise ValidationError(
                {"return_request": [f"Cannot move a {request.status} request to {new_status}"]}
            )

        now = datetime.now(UTC)
        self.return_request = ReturnRequest(
            request_type=request.request_type,
            reason=request.reason,
            status=new_status,
            admin_comment=admin_comment if admin_comment is not None else request.admin_comment,
            requested_at=request.requested_at,
            resolved_at=now,
        )
        self.updated_at = now

        self.raise_(
            ReturnRequestUpdated(
                order_id=self.id,
                customer_id=self.customer_id,
                request_type=request.request_type,
                status=new_status,
                admin_comment=self.return_request.admin_comment,
                updated_at=now,
            )
        )

    def resolve_return(self, approve, admin_comment=None):
        new_status = ReturnStatus.APPROVED.value if approve else ReturnStatus.REJECTED.value
        self._update_return((ReturnStatus.PENDING.value,), new_status, admin_comment)

    def complete_return(self):
        """Close a resolved request, whether it was approved or rejected."""
        self._update_return(
            (ReturnStatus.APPROVED.value, ReturnStatus.REJECTED.value),
            ReturnStatus.COMPLETED.value,
        )
