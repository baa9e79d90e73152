"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from checkout.inventory import reservation
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@given("a storefront in Bengaluru", target_fixture="world")
def storefront_in_bengaluru(storefront):
    return storefront


@then(parsers.cfparse('the warehouse has {quantity:d} units of "{product_id}" on hand'))
def units_on_hand(world, quantity, product_id):
    assert reservation.get_stock(world["warehouse_id"], product_id).stock == quantity


@then(parsers.cfparse('the warehouse has {quantity:d} units of "{product_id}" available'))
def units_available(world, quantity, product_id):
    assert reservation.get_product_stock(world["warehouse_id"], product_id) == quantity


@then(parsers.cfparse('the warehouse has {quantity:d} units of "{product_id}" reserved'))
def units_reserved(world, quantity, product_id):
    assert reservation.get_stock(world["warehouse_id"], product_id).reserved_stock == quantity
