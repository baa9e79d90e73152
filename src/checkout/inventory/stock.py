"""WarehouseStock aggregate — stock counters for one product at one warehouse.

Stock level model:
    stock:          physical units on the shelf
    reserved_stock: units promised to confirmed orders that have not shipped
    available:      stock - reserved_stock, what a new order can claim

Each order's claim is tracked as a ``StockReservation`` so every unit
reserved is accounted for by exactly one commit (shipment) or release
(cancellation). The aggregate id is ``"<warehouse_id>::<product_id>"``.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from checkout.domain import checkout
from checkout.errors import InsufficientStock
from checkout.inventory.events import (
    StockCommitted,
    StockLevelSet,
    StockReservationReleased,
    StockReserved,
)


def stock_id(warehouse_id, product_id) -> str:
    return f"{warehouse_id}::{product_id}"


class ReservationStatus(Enum):
    ACTIVE = "Active"
    COMMITTED = "Committed"
    RELEASED = "Released"


@checkout.entity(part_of="WarehouseStock")
class StockReservation:
    order_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    status = String(choices=ReservationStatus, default=ReservationStatus.ACTIVE.value)
    reserved_at = DateTime(required=True)
    settled_at = DateTime()


@checkout.aggregate
class WarehouseStock:
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    stock = Integer(default=0, min_value=0)
    reserved_stock = Integer(default=0, min_value=0)
    reservations = HasMany(StockReservation)
    last_updated = DateTime()

    @invariant.post
    def reserved_cannot_exceed_stock(self):
        if (self.reserved_stock or 0) > (self.stock or 0):
            raise ValidationError({"reserved_stock": ["Reserved stock cannot exceed stock on hand"]})

    @classmethod
    def create(cls, warehouse_id, product_id, stock=0):
        return cls(
            id=stock_id(warehouse_id, product_id),
            warehouse_id=warehouse_id,
            product_id=product_id,
            stock=stock,
            reserved_stock=0,
            last_updated=datetime.now(UTC),
        )

    @property
    def available(self) -> int:
        return self.stock - self.reserved_stock

    def _reservation_for(self, order_id, status=ReservationStatus.ACTIVE):
        return next(
            (r for r in self.reservations if r.order_id == order_id and r.status == status.value),
            None,
        )

    def set_stock(self, quantity):
        if quantity < self.reserved_stock:
            raise ValidationError(
                {"stock": [f"Stock cannot be set below reserved quantity ({self.reserved_stock})"]}
            )
        previous = self.stock
        now = datetime.now(UTC)
        self.stock = quantity
        self.last_updated = now
        self.raise_(
            StockLevelSet(
                warehouse_id=self.warehouse_id,
                product_id=self.product_id,
                previous_stock=previous,
                stock=quantity,
                set_at=now,
            )
        )

    def reserve(self, order_id, quantity):
        """Claim ``quantity`` units for ``order_id``. Repeating a claim for the same order is a no-op."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Reservation quantity must be positive"]})
        if self._reservation_for(order_id) is not None:
            return
        if self.available < quantity:
            raise InsufficientStock(
                {
                    "stock": [
                        f"Insufficient stock for product {self.product_id}: "
                        f"requested {quantity}, available {self.available}"
                    ]
                }
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.add_reservations(
                StockReservation(
                    order_id=order_id,
                    quantity=quantity,
                    status=ReservationStatus.ACTIVE.value,
                    reserved_at=now,
                )
            )
            self.reserved_stock += quantity
        self.last_updated = now

        self.raise_(
            StockReserved(
                warehouse_id=self.warehouse_id,
                product_id=self.product_id,
                order_id=order_id,
                quantity=quantity,
                reserved_stock=self.reserved_stock,
                reserved_at=now,
            )
        )

    def release(self, order_id) -> int:
        reservation = self._reservation_for(order_id)
        if reservation is None:
            return 0

        now = datetime.now(UTC)
        with atomic_change(self):
            reservation.status = ReservationStatus.RELEASED.value
            reservation.settled_at = now
            self.reserved_stock -= reservation.quantity
        self.last_updated = now

        self.raise_(
            StockReservationReleased(
                warehouse_id=self.warehouse_id,
                product_id=self.product_id,
                order_id=order_id,
                quantity=reservation.quantity,
                released_at=now,
            )
        )
        return reservation.quantity

    def commit(self, order_id) -> int:
        """Turn the order's reservation into a permanent decrement of stock."""
        reservation = self._reservation_for(order_id)
        if reservation is None:
            return 0

        now = datetime.now(UTC)
        with atomic_change(self):
            reservation.status = ReservationStatus.COMMITTED.value
            reservation.settled_at = now
            self.reserved_stock -= reservation.quantity
            self.stock -= reservation.quantity
        self.last_updated = now

        self.raise_(
            StockCommitted(
                warehouse_id=self.warehouse_id,
                product_id=self.product_id,
                order_id=order_id,
                quantity=reservation.quantity,
                stock=self.stock,
                committed_at=now,
            )
        )
        return reservation.quantity
