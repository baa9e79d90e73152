"""Warehouse and stock administration — commands and handlers."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.inventory.stock import WarehouseStock, stock_id
from checkout.inventory.warehouse import Warehouse
from checkout.utils.concurrency import update_with_retry


def _decode_pincodes(value):
    if not value:
        return []
    return json.loads(value) if isinstance(value, str) else list(value)


@checkout.command(part_of="Warehouse")
class RegisterWarehouse:
    code = String(required=True, max_length=20)
    name = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    address = String(max_length=500)
    pincode = String(max_length=6)
    manager = String(max_length=255)
    serviceable_pincodes = Text()  # JSON list of pincodes


@checkout.command(part_of="Warehouse")
class UpdateServiceablePincodes:
    warehouse_id = Identifier(required=True)
    serviceable_pincodes = Text()  # JSON list of pincodes


@checkout.command(part_of="Warehouse")
class DeactivateWarehouse:
    warehouse_id = Identifier(required=True)


@checkout.command(part_of="WarehouseStock")
class SetStockLevel:
    """Record the absolute on-hand count of a product at a warehouse."""

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    stock = Integer(required=True, min_value=0)


@checkout.command_handler(part_of=Warehouse)
class WarehouseManagementHandler:
    @handle(RegisterWarehouse)
    def register_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        code = command.code.strip().upper()
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": [f"Warehouse code {code} already exists"]})

        warehouse = Warehouse.register(
            code=code,
            name=command.name,
            city=command.city,
            state=command.state,
            address=command.address,
            pincode=command.pincode,
            manager=command.manager,
            serviceable_pincodes=_decode_pincodes(command.serviceable_pincodes),
        )
        repo.add(warehouse)
        return str(warehouse.id)

    @handle(UpdateServiceablePincodes)
    def update_serviceable_pincodes(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.get(command.warehouse_id)
        warehouse.update_serviceable_pincodes(_decode_pincodes(command.serviceable_pincodes))
        repo.add(warehouse)

    @handle(DeactivateWarehouse)
    def deactivate_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.get(command.warehouse_id)
        warehouse.deactivate()
        repo.add(warehouse)


@checkout.command_handler(part_of=WarehouseStock)
class StockLevelHandler:
    @handle(SetStockLevel)
    def set_stock_level(self, command):
        current_domain.repository_for(Warehouse).get(command.warehouse_id)

        def load():
            repo = current_domain.repository_for(WarehouseStock)
            try:
                return repo, repo.get(stock_id(command.warehouse_id, command.product_id))
            except ObjectNotFoundError:
                return repo, WarehouseStock.create(command.warehouse_id, command.product_id)

        update_with_retry(load, lambda stock: stock.set_stock(command.stock))
        return stock_id(command.warehouse_id, command.product_id)
