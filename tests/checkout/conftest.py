"""Shared fixtures for the checkout tests.

``storefront`` seeds a small, consistent world: two pincodes, three catalog
products, one warehouse in Bengaluru with stock, and one delivery agent.
"""

import json

import pytest
from checkout.catalog import get_catalog, reset_catalog
from checkout.delivery.management import RegisterDeliveryAgent
from checkout.inventory.management import RegisterWarehouse, SetStockLevel
from checkout.notification.channel import reset_channels
from checkout.order.placement import PlaceOrder
from checkout.payment.gateway import get_gateway, reset_gateway
from checkout.pincode.management import AddPincode
from checkout.rewards import service as rewards
from protean import current_domain

ADDRESS = {
    "full_name": "Asha Rao",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}

PRODUCTS = {
    "ring-001": ("Solitaire Diamond Ring", 20000.0),
    "pendant-001": ("Gold Pendant", 5000.0),
    "earring-001": ("Pearl Studs", 1500.0),
}

STOCK = {"ring-001": 5, "pendant-001": 3, "earring-001": 10}


@pytest.fixture(autouse=True)
def _reset_adapters():
    reset_gateway()
    reset_catalog()
    reset_channels()
    yield
    reset_gateway()
    reset_catalog()
    reset_channels()


@pytest.fixture()
def gateway():
    return get_gateway()


@pytest.fixture()
def catalog():
    catalog = get_catalog()
    for product_id, (name, price) in PRODUCTS.items():
        catalog.add_product(product_id, name, price, image=f"https://cdn.aurelia.test/{product_id}.jpg")
    return catalog


@pytest.fixture()
def storefront(catalog):
    current_domain.process(
        AddPincode(code="560001", city="Bengaluru", state="Karnataka", delivery_days=3, cod_available=True),
        asynchronous=False,
    )
    current_domain.process(
        AddPincode(code="110001", city="New Delhi", state="Delhi", delivery_days=5, cod_available=False),
        asynchronous=False,
    )

    warehouse_id = current_domain.process(
        RegisterWarehouse(
            code="blr-01",
            name="Bengaluru Central",
            city="Bengaluru",
            state="Karnataka",
            pincode="560002",
            serviceable_pincodes=json.dumps(["560001"]),
        ),
        asynchronous=False,
    )
    for product_id, quantity in STOCK.items():
        current_domain.process(
            SetStockLevel(warehouse_id=warehouse_id, product_id=product_id, stock=quantity),
            asynchronous=False,
        )

    agent_id = current_domain.process(
        RegisterDeliveryAgent(
            name="Ravi Kumar",
            phone="9000000001",
            assigned_area="Bengaluru",
            assigned_pincodes=json.dumps(["560001"]),
        ),
        asynchronous=False,
    )

    return {"warehouse_id": warehouse_id, "agent_id": agent_id, "catalog": catalog}


@pytest.fixture()
def address():
    return dict(ADDRESS)


def _grant_points(user_id, points, order_id=None):
    """Credit ``points`` by recording an earn on a purchase worth 100x that amount."""
    return rewards.earn_points(user_id, order_id or f"seed-{user_id}-{points}", points * 100)


def _place_order(
    payment_method="Cash on Delivery",
    items=None,
    customer_id="cust-001",
    address=None,
    **overrides,
):
    command = PlaceOrder(
        customer_id=customer_id,
        items=json.dumps(items or [{"product_id": "ring-001", "quantity": 1}]),
        shipping_address=json.dumps(address or ADDRESS),
        payment_method=payment_method,
        **overrides,
    )
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def grant_points():
    return _grant_points


@pytest.fixture()
def place_order():
    return _place_order

