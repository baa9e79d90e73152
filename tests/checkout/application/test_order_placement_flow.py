"""Placing orders end to end through the PlaceOrder command."""

import json

import pytest
from checkout.delivery.agent import DeliveryAgent
from checkout.errors import (
    GatewayMisconfigured,
    NoFulfillableWarehouse,
    ProviderNotSelected,
    ServiceabilityError,
)
from checkout.inventory import reservation
from checkout.order.order import InventoryState, Order, OrderStatus, PaymentStatus
from checkout.rewards import service as rewards
from protean import current_domain
from protean.exceptions import ValidationError


def _order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def _available(storefront, product_id="ring-001"):
    return reservation.get_product_stock(storefront["warehouse_id"], product_id)


class TestCashOnDelivery:
    def test_reserves_stock_and_assigns_agent(self, storefront, place_order):
        order = _order(place_order())

        assert order.payment_status == PaymentStatus.AWAITING_DELIVERY_PAYMENT.value
        assert order.is_paid is False
        assert order.status == OrderStatus.PENDING.value
        assert order.inventory_state == InventoryState.RESERVED.value
        assert order.fulfillment_warehouse_id == storefront["warehouse_id"]
        assert order.delivery_agent_id == storefront["agent_id"]
        assert _available(storefront) == 4

        agent = current_domain.repository_for(DeliveryAgent).get(storefront["agent_id"])
        assert agent.active_orders == 1
        assert agent.total_assigned == 1

    def test_snapshots_catalog_values(self, storefront, place_order):
        order_id = place_order(items=[{"product_id": "ring-001", "quantity": 1}, {"product_id": "earring-001", "quantity": 2}])
        storefront["catalog"].add_product("ring-001", "Renamed Ring", 99999.0)

        order = _order(order_id)
        ring = next(i for i in order.items if i.product_id == "ring-001")
        assert ring.name == "Solitaire Diamond Ring"
        assert ring.price == 20000.0
        assert ring.image == "https://cdn.aurelia.test/ring-001.jpg"
        assert order.items_price == 23000.0
        assert order.total_price == 23000.0

    def test_estimated_delivery_uses_pincode_days(self, storefront, place_order):
        order = _order(place_order())
        assert (order.estimated_delivery - order.created_at.date()).days == 3

    def test_cod_rejected_where_unavailable(self, storefront, place_order, address):
        address.update(city="New Delhi", state="Delhi", pincode="110001")
        with pytest.raises(ValidationError) as exc:
            place_order(address=address)
        assert "payment_method" in exc.value.messages

    def test_out_of_stock_rejected(self, storefront, place_order):
        with pytest.raises(NoFulfillableWarehouse):
            place_order(items=[{"product_id": "pendant-001", "quantity": 4}])
        assert _available(storefront, "pendant-001") == 3

    def test_gift_details_are_kept(self, storefront, place_order):
        gift = {"is_gift": True, "wrapping_type": "Luxury Box", "message": "Happy anniversary", "hide_price": True}
        order = _order(place_order(gift=json.dumps(gift)))
        assert order.gift.is_gift is True
        assert order.gift.wrapping_type == "Luxury Box"
        assert order.gift.hide_price is True

    def test_unknown_product_rejected(self, storefront, place_order):
        with pytest.raises(ValidationError) as exc:
            place_order(items=[{"product_id": "crown-001", "quantity": 1}])
        assert "items" in exc.value.messages


class TestBnpl:
    def test_provider_acknowledgment_pays_the_order(self, storefront, place_order):
        order = _order(place_order(payment_method="BNPL", bnpl_provider="ZestMoney"))

        assert order.is_paid is True
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.bnpl_plan.provider == "ZestMoney"
        assert order.bnpl_plan.installments == 6
        assert order.bnpl_plan.status == "Approved"
        assert order.bnpl_plan.reference.startswith("bnpl_")
        assert order.payment_result.transaction_id == order.bnpl_plan.reference
        assert order.inventory_state == InventoryState.RESERVED.value

    def test_explicit_reference_is_used(self, storefront, place_order):
        order = _order(place_order(payment_method="BNPL", bnpl_provider="Simpl", bnpl_reference="simpl-778"))
        assert order.payment_result.transaction_id == "simpl-778"

    def test_missing_provider_rejected(self, storefront, place_order):
        with pytest.raises(ProviderNotSelected):
            place_order(payment_method="BNPL")
        assert _available(storefront) == 5


class TestGateway:
    def test_opens_gateway_order_without_reserving(self, storefront, place_order, gateway):
        order = _order(place_order(payment_method="Gateway"))

        assert order.payment_status == PaymentStatus.AWAITING_PAYMENT.value
        assert order.gateway_order_id.startswith("fake_order_")
        assert order.payment_attempts == 1
        assert order.inventory_state == InventoryState.UNRESERVED.value
        assert order.delivery_agent_id is None
        assert _available(storefront) == 5

        create_calls = [c for c in gateway.calls if c["method"] == "create_order"]
        assert create_calls == [
            {"method": "create_order", "amount": 20000.0, "currency": "INR", "receipt": order.id}
        ]

    def test_misconfigured_gateway_rejected(self, storefront, place_order, gateway, grant_points):
        gateway.configure(configured=False)
        grant_points("cust-001", 500)

        with pytest.raises(GatewayMisconfigured):
            place_order(payment_method="Gateway", reward_points=500)

        ledger = rewards.get_ledger("cust-001")
        assert ledger.available_points == 500
        assert not current_domain.repository_for(Order)._dao.query.all().items

    def test_unfulfillable_destination_rejected(self, storefront, place_order, address, gateway):
        address.update(city="New Delhi", state="Delhi", pincode="110001")
        with pytest.raises(NoFulfillableWarehouse):
            place_order(payment_method="Gateway", address=address)
        assert gateway.calls == []

    def test_fully_discounted_order_paid_with_points(self, storefront, place_order, grant_points, gateway):
        grant_points("cust-001", 15000)
        order = _order(
            place_order(
                payment_method="Gateway",
                items=[{"product_id": "earring-001", "quantity": 1}],
                reward_points=15000,
            )
        )

        assert order.total_price == 0.0
        assert order.is_paid is True
        assert order.payment_result.provider == "Reward Points"
        assert order.inventory_state == InventoryState.RESERVED.value
        assert gateway.calls == []
        assert rewards.get_balance("cust-001") == 0


class TestServiceability:
    def test_unserviceable_pincode_has_no_side_effects(self, storefront, place_order, address, gateway, grant_points):
        grant_points("cust-001", 500)
        address["pincode"] = "999999"

        with pytest.raises(ServiceabilityError):
            place_order(payment_method="Gateway", address=address, reward_points=500)

        assert gateway.calls == []
        assert _available(storefront) == 5
        assert rewards.get_ledger("cust-001").available_points == 500

    def test_malformed_pincode_rejected(self, storefront, place_order, address):
        address["pincode"] = "5600"
        with pytest.raises(ValidationError) as exc:
            place_order(address=address)
        assert "pincode" in exc.value.messages


class TestRewardRedemption:
    def test_discount_applied_and_points_debited(self, storefront, place_order, grant_points):
        grant_points("cust-001", 500)
        order = _order(place_order(reward_points=500))

        assert order.reward_redemption.points == 500
        assert order.reward_redemption.discount_amount == 50.0
        assert order.total_price == 19950.0
        assert rewards.get_balance("cust-001") == 0

    def test_insufficient_points_continue_without_discount(self, storefront, place_order, grant_points):
        grant_points("cust-001", 50)
        order = _order(place_order(reward_points=500))

        assert order.reward_redemption is None
        assert order.total_price == 20000.0
        assert rewards.get_balance("cust-001") == 50

    def test_redemption_capped_at_items_price(self, storefront, place_order, grant_points):
        grant_points("cust-001", 20000)
        order = _order(
            place_order(
                items=[{"product_id": "earring-001", "quantity": 1}],
                reward_points=20000,
            )
        )

        assert order.reward_redemption.points == 15000
        assert order.total_price == 0.0
        assert rewards.get_balance("cust-001") == 5000
