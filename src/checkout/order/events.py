"""Domain events for the Order aggregate.

Events carry enough context (customer, amounts, statuses) for downstream
consumers like notifications to act without loading the order.
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A checkout was accepted and the order recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    items_count = Integer(required=True)
    items_price = Float(required=True)
    discount_amount = Float(default=0.0)
    total_price = Float(required=True)
    pincode = String(required=True)
    estimated_delivery = Date()
    is_gift = Boolean(default=False)
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentAwaited:
    """A gateway order was opened and the client must complete payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    amount = Float(required=True)
    attempt = Integer(required=True)


@checkout.event(part_of="Order")
class PaymentConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    transaction_id = String(required=True)
    provider = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentAttemptFailed:
    """One payment attempt failed verification; the order stays payable."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    attempt = Integer(required=True)
    failed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentMethodSwitched:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_method = String(required=True)
    payment_method = String(required=True)
    switched_at = DateTime(required=True)


@checkout.event(part_of="Order")
class DeliveryAgentAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    previous_agent_id = Identifier()
    assigned_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderStatusAdvanced:
    """The order moved forward in its lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    note = String()
    advanced_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    refund_id = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)


@checkout.event(part_of="Order")
class ReturnRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    request_type = String(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)


@checkout.event(part_of="Order")
class ReturnRequestUpdated:
    """The return/exchange request was approved, rejected or completed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    request_type = String(required=True)
    status = String(required=True)
    admin_comment = String()
    updated_at = DateTime(required=True)
