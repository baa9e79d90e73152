"""Domain events for warehouses and warehouse stock."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from checkout.domain import checkout


@checkout.event(part_of="Warehouse")
class WarehouseRegistered:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    code = String(required=True)
    name = String(required=True)
    city = String(required=True)
    serviceable_pincodes = Text()  # JSON list
    registered_at = DateTime(required=True)


@checkout.event(part_of="Warehouse")
class ServiceablePincodesUpdated:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    serviceable_pincodes = Text(required=True)  # JSON list
    updated_at = DateTime(required=True)


@checkout.event(part_of="Warehouse")
class WarehouseDeactivated:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@checkout.event(part_of="WarehouseStock")
class StockLevelSet:
    """An administrator recorded the physical stock count."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    stock = Integer(required=True)
    set_at = DateTime(required=True)


@checkout.event(part_of="WarehouseStock")
class StockReserved:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    reserved_stock = Integer(required=True)
    reserved_at = DateTime(required=True)


@checkout.event(part_of="WarehouseStock")
class StockReservationReleased:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    released_at = DateTime(required=True)


@checkout.event(part_of="WarehouseStock")
class StockCommitted:
    """Reserved units left the warehouse with a shipment."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock = Integer(required=True)
    committed_at = DateTime(required=True)
