"""Return and exchange requests — commands and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order
from checkout.order.payment import load_owned_order


@checkout.command(part_of="Order")
class RequestReturn:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    request_type = String(required=True, max_length=20)
    reason = String(required=True, max_length=500)


@checkout.command(part_of="Order")
class ResolveReturnRequest:
    order_id = Identifier(required=True)
    approve = Boolean(required=True)
    admin_comment = String(max_length=500)


@checkout.command(part_of="Order")
class CompleteReturnRequest:
    order_id = Identifier(required=True)


@checkout.command_handler(part_of=Order)
class ReturnRequestHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        repo = current_domain.repository_for(Order)
        order = load_owned_order(command.order_id, command.customer_id)
        order.request_return(command.request_type, command.reason)
        repo.add(order)

    @handle(ResolveReturnRequest)
    def resolve_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.resolve_return(command.approve, command.admin_comment)
        repo.add(order)

    @handle(CompleteReturnRequest)
    def complete_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.complete_return()
        repo.add(order)
