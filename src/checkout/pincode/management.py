"""Pincode administration — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.pincode.pincode import Pincode, validate_pincode


@checkout.command(part_of="Pincode")
class AddPincode:
    code = String(required=True, max_length=6)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    delivery_days = Integer(min_value=1)
    cod_available = Boolean(default=True)


@checkout.command(part_of="Pincode")
class UpdatePincode:
    code = String(required=True, max_length=6)
    city = String(max_length=100)
    state = String(max_length=100)
    delivery_days = Integer(min_value=1)
    cod_available = Boolean()


@checkout.command(part_of="Pincode")
class DeactivatePincode:
    code = String(required=True, max_length=6)


@checkout.command(part_of="Pincode")
class ActivatePincode:
    code = String(required=True, max_length=6)


@checkout.command_handler(part_of=Pincode)
class PincodeManagementHandler:
    @handle(AddPincode)
    def add_pincode(self, command):
        repo = current_domain.repository_for(Pincode)
        code = validate_pincode(command.code, field="code")
        try:
            repo.get(code)
        except ObjectNotFoundError:
            pass
        else:
            raise ValidationError({"code": [f"Pincode {code} already exists"]})

        pincode = Pincode.create(
            code=code,
            city=command.city,
            state=command.state,
            delivery_days=command.delivery_days,
            cod_available=command.cod_available,
        )
        repo.add(pincode)
        return pincode.code

    @handle(UpdatePincode)
    def update_pincode(self, command):
        repo = current_domain.repository_for(Pincode)
        pincode = repo.get(command.code)
        pincode.update_details(
            city=command.city,
            state=command.state,
            delivery_days=command.delivery_days,
            cod_available=command.cod_available,
        )
        repo.add(pincode)

    @handle(DeactivatePincode)
    def deactivate_pincode(self, command):
        repo = current_domain.repository_for(Pincode)
        pincode = repo.get(command.code)
        pincode.deactivate()
        repo.add(pincode)

    @handle(ActivatePincode)
    def activate_pincode(self, command):
        repo = current_domain.repository_for(Pincode)
        pincode = repo.get(command.code)
        pincode.activate()
        repo.add(pincode)
