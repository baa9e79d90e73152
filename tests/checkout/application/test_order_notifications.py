"""Customer notifications raised by order events."""

from checkout.notification.channel import get_channel
from checkout.notification.dispatcher import dispatch
from checkout.order.lifecycle import AdvanceOrderStatus, CancelOrder
from checkout.order.order import Order
from protean import current_domain


def _subjects(channel_type):
    return [m["subject"] for m in get_channel(channel_type).sent_messages]


def test_placement_sends_confirmation(storefront, place_order):
    order_id = place_order()

    assert f"Order {order_id} confirmed" in _subjects("Email")
    assert f"Order {order_id} confirmed" in _subjects("WhatsApp")
    message = next(m for m in get_channel("Email").sent_messages if m["subject"] == f"Order {order_id} confirmed")
    assert message["recipient"] == "cust-001"
    assert "20000.00" in message["body"]


def test_payment_receipt_goes_by_email_only(storefront, place_order):
    order_id = place_order(payment_method="BNPL", bnpl_provider="Simpl")

    assert f"Payment received for order {order_id}" in _subjects("Email")
    assert f"Payment received for order {order_id}" not in _subjects("WhatsApp")


def test_shipping_reaches_every_channel(storefront, place_order):
    order_id = place_order()
    current_domain.process(AdvanceOrderStatus(order_id=order_id, status="Confirmed"), asynchronous=False)
    current_domain.process(AdvanceOrderStatus(order_id=order_id, status="Shipped"), asynchronous=False)

    for channel_type in ("Email", "WhatsApp", "Push"):
        assert f"Order {order_id} has shipped" in _subjects(channel_type)
    assert not any("Confirmed" in s for s in _subjects("Push"))


def test_cancellation_carries_reason(storefront, place_order):
    order_id = place_order()
    current_domain.process(CancelOrder(order_id=order_id, reason="Ordered twice"), asynchronous=False)

    message = next(m for m in get_channel("Email").sent_messages if m["subject"] == f"Order {order_id} cancelled")
    assert "Ordered twice" in message["body"]


def test_failing_channel_does_not_block_checkout(storefront, place_order):
    get_channel("Email").configure(should_succeed=False)

    order_id = place_order()

    assert current_domain.repository_for(Order).get(order_id).customer_id == "cust-001"
    assert _subjects("Email") == []
    assert f"Order {order_id} confirmed" in _subjects("WhatsApp")


def test_dispatch_skips_unrenderable_messages():
    assert dispatch("cust-001", "OrderCancelled", {"order_id": "ord-1"}) == []
    assert dispatch("cust-001", "Birthday", {}) == []


def test_dispatch_reports_delivered_channels():
    get_channel("WhatsApp").configure(should_succeed=False)

    results = dispatch("cust-001", "OrderConfirmation", {
        "order_id": "ord-1",
        "total_price": "100.00",
        "estimated_delivery": "2026-01-01",
    })

    assert [r["channel"] for r in results] == ["Email"]
