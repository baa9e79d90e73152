"""Tests for the WarehouseStock aggregate."""

import pytest
from checkout.errors import InsufficientStock
from checkout.inventory.events import StockCommitted, StockReservationReleased, StockReserved
from checkout.inventory.stock import ReservationStatus, WarehouseStock, stock_id
from protean.exceptions import ValidationError


def _make_stock(quantity=3):
    stock = WarehouseStock.create("wh-1", "ring-001", stock=quantity)
    stock._events.clear()
    return stock


class TestCreation:
    def test_id_combines_warehouse_and_product(self):
        stock = _make_stock()
        assert stock.id == stock_id("wh-1", "ring-001") == "wh-1::ring-001"

    def test_everything_available_initially(self):
        stock = _make_stock(3)
        assert stock.reserved_stock == 0
        assert stock.available == 3


class TestReserve:
    def test_reserve_moves_units_to_reserved(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        assert stock.reserved_stock == 2
        assert stock.available == 1
        assert stock.stock == 3
        assert isinstance(stock._events[-1], StockReserved)

    def test_reserving_more_than_available_fails(self):
        stock = _make_stock(3)
        with pytest.raises(InsufficientStock):
            stock.reserve("ord-1", 5)
        assert stock.reserved_stock == 0
        assert stock.reservations == []

    def test_repeat_reservation_for_order_is_noop(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        stock.reserve("ord-1", 2)
        assert stock.reserved_stock == 2

    def test_quantity_must_be_positive(self):
        stock = _make_stock(3)
        with pytest.raises(ValidationError):
            stock.reserve("ord-1", 0)


class TestReleaseAndCommit:
    def test_release_returns_units(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        assert stock.release("ord-1") == 2
        assert stock.reserved_stock == 0
        assert stock.stock == 3
        assert isinstance(stock._events[-1], StockReservationReleased)

    def test_commit_decrements_stock(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        assert stock.commit("ord-1") == 2
        assert stock.reserved_stock == 0
        assert stock.stock == 1
        assert isinstance(stock._events[-1], StockCommitted)

    def test_each_reservation_settles_once(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        stock.commit("ord-1")
        assert stock.release("ord-1") == 0
        assert stock.commit("ord-1") == 0
        assert stock.stock == 1

    def test_reservation_status_recorded(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 1)
        stock.release("ord-1")
        assert stock.reservations[0].status == ReservationStatus.RELEASED.value

    def test_reserved_equals_commits_plus_releases(self):
        stock = _make_stock(10)
        stock.reserve("ord-1", 2)
        stock.reserve("ord-2", 3)
        stock.reserve("ord-3", 1)
        committed = stock.commit("ord-1") + stock.commit("ord-3")
        released = stock.release("ord-2")
        assert committed + released == 6
        assert stock.reserved_stock == 0
        assert stock.stock == 7


class TestSetStock:
    def test_set_absolute_level(self):
        stock = _make_stock(3)
        stock.set_stock(8)
        assert stock.stock == 8

    def test_cannot_drop_below_reserved(self):
        stock = _make_stock(3)
        stock.reserve("ord-1", 2)
        with pytest.raises(ValidationError) as exc:
            stock.set_stock(1)
        assert "stock" in exc.value.messages
        assert stock.stock == 3
