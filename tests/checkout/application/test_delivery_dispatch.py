"""Delivery agent administration and order-to-agent assignment."""

import json

import pytest
from checkout.delivery import assignment
from checkout.delivery.agent import DeliveryAgent
from checkout.delivery.management import DeactivateDeliveryAgent, RegisterDeliveryAgent, UpdateAgentCoverage
from checkout.order.dispatch import AssignDeliveryAgent, ReassignDeliveryAgent
from checkout.order.lifecycle import AdvanceOrderStatus
from checkout.order.order import Order
from protean import current_domain
from protean.exceptions import ValidationError


def _order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def _agent(agent_id) -> DeliveryAgent:
    return current_domain.repository_for(DeliveryAgent).get(agent_id)


def _register(name, area=None, pincodes=None):
    return current_domain.process(
        RegisterDeliveryAgent(
            name=name,
            assigned_area=area,
            assigned_pincodes=json.dumps(pincodes) if pincodes is not None else None,
        ),
        asynchronous=False,
    )


def _deactivate(agent_id):
    current_domain.process(DeactivateDeliveryAgent(agent_id=agent_id), asynchronous=False)


class TestAutomaticAssignment:
    def test_least_loaded_pincode_agent_wins(self, storefront, place_order):
        place_order()
        meena = _register("Meena Iyer", pincodes=["560001"])

        second = _order(place_order(customer_id="cust-002"))

        assert second.delivery_agent_id == meena

    def test_falls_back_to_city_area(self, storefront, place_order):
        _deactivate(storefront["agent_id"])
        city_agent = _register("Kiran Shetty", area="  bengaluru ")

        assert _order(place_order()).delivery_agent_id == city_agent

    def test_pincode_match_beats_city_match(self, storefront, place_order):
        _register("Kiran Shetty", area="Bengaluru")
        assert _order(place_order()).delivery_agent_id == storefront["agent_id"]

    def test_order_stays_unassigned_without_coverage(self, storefront, place_order):
        _deactivate(storefront["agent_id"])
        order = _order(place_order())
        assert order.delivery_agent_id is None

    def test_assign_command_for_unassigned_order(self, storefront, place_order):
        order_id = place_order(payment_method="Gateway")

        agent_id = current_domain.process(AssignDeliveryAgent(order_id=order_id), asynchronous=False)

        assert agent_id == storefront["agent_id"]
        assert _order(order_id).delivery_agent_id == storefront["agent_id"]
        assert _agent(agent_id).active_orders == 1

    def test_assign_command_rejects_assigned_order(self, storefront, place_order):
        order_id = place_order()
        with pytest.raises(ValidationError):
            current_domain.process(AssignDeliveryAgent(order_id=order_id), asynchronous=False)


class TestReassignment:
    def test_moves_load_between_agents(self, storefront, place_order):
        order_id = place_order()
        meena = _register("Meena Iyer", area="Mysuru")

        current_domain.process(ReassignDeliveryAgent(order_id=order_id, agent_id=meena), asynchronous=False)

        assert _order(order_id).delivery_agent_id == meena
        ravi = _agent(storefront["agent_id"])
        assert ravi.active_orders == 0
        assert ravi.total_assigned == 0
        assert _agent(meena).active_orders == 1

    def test_inactive_agent_rejected(self, storefront, place_order):
        order_id = place_order()
        meena = _register("Meena Iyer", area="Mysuru")
        _deactivate(meena)

        with pytest.raises(ValidationError) as exc:
            current_domain.process(ReassignDeliveryAgent(order_id=order_id, agent_id=meena), asynchronous=False)
        assert "agent_id" in exc.value.messages

    def test_shipped_order_cannot_be_reassigned(self, storefront, place_order):
        order_id = place_order()
        meena = _register("Meena Iyer", area="Mysuru")
        current_domain.process(AdvanceOrderStatus(order_id=order_id, status="Shipped"), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(ReassignDeliveryAgent(order_id=order_id, agent_id=meena), asynchronous=False)


class TestAgentAdministration:
    def test_update_coverage(self, storefront):
        current_domain.process(
            UpdateAgentCoverage(agent_id=storefront["agent_id"], assigned_pincodes=json.dumps(["560002"])),
            asynchronous=False,
        )
        agent = _agent(storefront["agent_id"])
        assert agent.pincodes == ["560002"]
        assert agent.assigned_area == "Bengaluru"

    def test_deactivate_twice_rejected(self, storefront):
        _deactivate(storefront["agent_id"])
        with pytest.raises(ValidationError):
            _deactivate(storefront["agent_id"])

    def test_list_agents(self, storefront):
        meena = _register("Meena Iyer", area="Mysuru")
        _deactivate(meena)

        assert [a.name for a in assignment.list_agents()] == ["Meena Iyer", "Ravi Kumar"]
        assert [a.name for a in assignment.list_agents(active_only=True)] == ["Ravi Kumar"]
