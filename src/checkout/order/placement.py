"""Order placement — the checkout command and its handler.

Checkout runs every check that can reject the order (address, pincode
serviceability, catalog snapshots, payment method, warehouse coverage)
before it touches shared state. Only then are reward points held and the
payment path started:

- COD: stock is reserved and the order awaits payment at the door.
- BNPL: the provider's acknowledgment is recorded as the payment.
- Gateway: a gateway order is opened and the client pays externally. Stock
  is not reserved until ``ApplyVerifiedPayment`` confirms the payment. A
  zero payable amount skips the gateway and is paid immediately.
"""

import json
from datetime import UTC, datetime
from uuid import uuid4

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.catalog import snapshot_product
from checkout.domain import checkout, logger
from checkout.errors import BelowMinimum, GatewayMisconfigured, InsufficientBalance
from checkout.inventory.reservation import select_warehouse
from checkout.order.order import (
    BnplPlan,
    BnplStatus,
    GiftDetails,
    Order,
    PaymentMethod,
    RewardRedemption,
    ShippingAddress,
)
from checkout.order.settlement import accept_order, compensate
from checkout.payment.bnpl import installment_amount, select_provider
from checkout.payment.gateway import get_gateway
from checkout.pincode.serviceability import require_serviceable
from checkout.rewards import service as rewards
from checkout.rewards.ledger import MIN_REDEEMABLE_POINTS, max_points_for_amount, redeemable_points

CURRENCY = "INR"
ZERO_AMOUNT_PROVIDER = "Reward Points"


def _decode(value):
    return json.loads(value) if isinstance(value, str) else value


@checkout.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{"product_id": ..., "quantity": ...}]
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=50)
    bnpl_provider = String(max_length=50)
    bnpl_reference = String(max_length=100)
    reward_points = Integer(default=0)
    gift = Text()  # JSON: gift details dict
    tax_price = Float(default=0.0, min_value=0.0)
    shipping_price = Float(default=0.0, min_value=0.0)


def validate_payment_method(value) -> str:
    methods = {m.value for m in PaymentMethod}
    if value not in methods:
        raise ValidationError({"payment_method": [f"Payment method must be one of {', '.join(sorted(methods))}"]})
    return value


def snapshot_lines(items_data):
    """Freeze catalog values for each requested line as ``(snapshot, quantity)`` pairs."""
    if not items_data:
        raise ValidationError({"items": ["An order needs at least one item"]})

    lines = []
    for item in items_data:
        quantity = item.get("quantity")
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Quantity for product {item.get('product_id')} must be at least 1"]})
        lines.append((snapshot_product(item["product_id"]), quantity))
    return lines


def hold_rewards(customer_id, order_id, points, items_price) -> RewardRedemption | None:
    """Hold reward points against the order, capped at the items price.

    A request the ledger rejects (too few points, or below the minimum) is
    dropped and checkout carries on without a discount.
    """
    if not points:
        return None

    cap = max_points_for_amount(items_price)
    if points >= MIN_REDEEMABLE_POINTS and points > cap:
        if cap < MIN_REDEEMABLE_POINTS:
            logger.info("reward_redemption_skipped", customer_id=customer_id, order_id=order_id, reason="order too small")
            return None
        points = cap

    try:
        discount = rewards.redeem_points(customer_id, order_id, points)
    except (InsufficientBalance, BelowMinimum) as exc:
        logger.info("reward_redemption_skipped", customer_id=customer_id, order_id=order_id, reason=exc.messages)
        return None

    if not discount:
        return None
    return RewardRedemption(points=redeemable_points(points), discount_amount=discount)


def bnpl_plan_for(provider_name, total_price) -> BnplPlan:
    provider = select_provider(provider_name)
    return BnplPlan(
        provider=provider.value,
        installments=provider.installments,
        installment_amount=installment_amount(provider, total_price),
        status=BnplStatus.PENDING.value,
    )


def bnpl_reference_for(order_id, reference=None) -> str:
    return reference or f"bnpl_{int(datetime.now(UTC).timestamp())}_{order_id[:8]}"


def start_gateway_payment(order):
    """Open a gateway order for the payable amount, or settle at once when nothing is payable."""
    if order.total_price <= 0:
        order.mark_paid(f"points-{order.id}", ZERO_AMOUNT_PROVIDER, result_status="completed")
        accept_order(order)
        return None

    gateway = get_gateway()
    if not gateway.is_configured():
        raise GatewayMisconfigured("Payment gateway keys are not configured; choose cash on delivery instead")

    gateway_order = gateway.create_order(order.total_price, CURRENCY, receipt=order.id)
    order.await_gateway_payment(gateway_order.gateway_order_id)
    return gateway_order


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        payment_method = validate_payment_method(command.payment_method)
        address = ShippingAddress(**_decode(command.shipping_address))
        serviceability = require_serviceable(address.pincode)

        lines = snapshot_lines(_decode(command.items))
        gift_data = _decode(command.gift) if command.gift else None
        gift = GiftDetails(**gift_data) if gift_data else None

        if payment_method == PaymentMethod.BNPL.value:
            select_provider(command.bnpl_provider)
        if payment_method == PaymentMethod.COD.value and not serviceability.cod_available:
            raise ValidationError(
                {"payment_method": [f"Cash on delivery is not available for pincode {address.pincode}"]}
            )

        product_lines = [(snapshot.product_id, quantity) for snapshot, quantity in lines]
        warehouse = select_warehouse(address.pincode, product_lines)

        order_id = str(uuid4())
        items_price = round(sum(snapshot.price * quantity for snapshot, quantity in lines), 2)
        tax_price = command.tax_price or 0.0
        shipping_price = command.shipping_price or 0.0

        order = None
        try:
            redemption = hold_rewards(command.customer_id, order_id, command.reward_points, items_price)
            discount = redemption.discount_amount if redemption else 0.0
            total_price = round(items_price - discount + tax_price + shipping_price, 2)

            bnpl_plan = None
            if payment_method == PaymentMethod.BNPL.value:
                bnpl_plan = bnpl_plan_for(command.bnpl_provider, total_price)

            order = Order.place(
                order_id=order_id,
                customer_id=command.customer_id,
                lines=lines,
                shipping_address=address,
                payment_method=payment_method,
                delivery_days=serviceability.delivery_days,
                tax_price=tax_price,
                shipping_price=shipping_price,
                reward_redemption=redemption,
                bnpl_plan=bnpl_plan,
                gift=gift,
                warehouse_id=warehouse.id,
            )

            if payment_method == PaymentMethod.COD.value:
                order.await_delivery_payment()
                accept_order(order)
            elif payment_method == PaymentMethod.BNPL.value:
                order.approve_bnpl(bnpl_reference_for(order_id, command.bnpl_reference))
                accept_order(order)
            else:
                start_gateway_payment(order)
        except Exception:
            compensate(
                command.customer_id,
                order_id,
                warehouse_id=order.fulfillment_warehouse_id if order else warehouse.id,
                product_ids=[p for p, _ in product_lines],
            )
            raise

        current_domain.repository_for(Order).add(order)
        logger.info(
            "order_placed",
            order_id=order.id,
            customer_id=order.customer_id,
            payment_method=payment_method,
            total_price=order.total_price,
            payment_status=order.payment_status,
        )
        return order.id
