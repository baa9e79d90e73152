"""FastAPI endpoints for checkout, payments, pincodes, rewards, warehouses and agents.

The authenticated customer arrives in the ``X-User-Id`` header and is
threaded into every command and query that is scoped to a customer.
"""

import json
import os

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from checkout.api.schemas import (
    AddPincodeRequest,
    AdvanceStatusRequest,
    AgentAssignmentResponse,
    AgentResponse,
    CancelOrderRequest,
    CountResponse,
    GatewayOrderResponse,
    IdResponse,
    OrderItemResponse,
    OrderResponse,
    PaymentOutcomeResponse,
    PaymentWebhookRequest,
    PincodeResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    ReassignAgentRequest,
    RegisterAgentRequest,
    RegisterWarehouseRequest,
    RequestReturnRequest,
    ResolveReturnRequestBody,
    ReturnRequestResponse,
    RewardBalanceResponse,
    RewardTransactionResponse,
    ServiceabilityResponse,
    ServiceablePincodesRequest,
    SetStockLevelRequest,
    StatusResponse,
    StockResponse,
    SwitchPaymentMethodRequest,
    TimelineEntryResponse,
    UpdateAgentCoverageRequest,
    UpdatePincodeRequest,
    VerifyPaymentRequest,
)
from checkout.delivery.agent import DeliveryAgent
from checkout.delivery.assignment import list_agents
from checkout.delivery.management import DeactivateDeliveryAgent, RegisterDeliveryAgent, UpdateAgentCoverage
from checkout.errors import PaymentVerificationFailed
from checkout.inventory.management import (
    DeactivateWarehouse,
    RegisterWarehouse,
    SetStockLevel,
    UpdateServiceablePincodes,
)
from checkout.inventory.reservation import get_stock, list_stock
from checkout.order.dispatch import AssignDeliveryAgent, ReassignDeliveryAgent
from checkout.order.lifecycle import AdvanceOrderStatus, CancelOrder
from checkout.order.payment import (
    ApplyVerifiedPayment,
    ExpireAbandonedPayments,
    PaymentOutcome,
    RecordCodCollection,
    RetryPayment,
    SwitchPaymentMethod,
)
from checkout.order.placement import PlaceOrder
from checkout.order.queries import get_order, list_orders_by_status, list_orders_for_agent, list_orders_for_user
from checkout.order.returns import CompleteReturnRequest, RequestReturn, ResolveReturnRequest
from checkout.payment.gateway import get_gateway
from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.pincode.management import ActivatePincode, AddPincode, DeactivatePincode, UpdatePincode
from checkout.pincode.serviceability import check_serviceability, list_pincodes
from checkout.rewards import service as rewards


def _order_response(order) -> OrderResponse:
    return_request = None
    if order.return_request:
        return_request = ReturnRequestResponse(
            request_type=order.return_request.request_type,
            reason=order.return_request.reason,
            status=order.return_request.status,
            admin_comment=order.return_request.admin_comment,
        )

    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                image=item.image,
            )
            for item in order.items
        ],
        items_price=order.items_price,
        discount_amount=order.discount_amount,
        tax_price=order.tax_price,
        shipping_price=order.shipping_price,
        total_price=order.total_price,
        redeemed_points=order.redeemed_points,
        estimated_delivery=order.estimated_delivery,
        delivery_agent_id=str(order.delivery_agent_id) if order.delivery_agent_id else None,
        is_gift=bool(order.gift and order.gift.is_gift),
        timeline=[
            TimelineEntryResponse(status=entry.status, note=entry.note, recorded_at=entry.recorded_at)
            for entry in order.timeline
        ],
        return_request=return_request,
    )


def _agent_response(agent) -> AgentResponse:
    return AgentResponse(
        agent_id=str(agent.id),
        name=agent.name,
        assigned_area=agent.assigned_area,
        assigned_pincodes=agent.pincodes,
        is_active=agent.is_active,
        active_orders=agent.active_orders,
        total_delivered=agent.total_delivered,
        total_assigned=agent.total_assigned,
    )


def _stock_response(stock) -> StockResponse:
    return StockResponse(
        warehouse_id=str(stock.warehouse_id),
        product_id=str(stock.product_id),
        stock=stock.stock,
        reserved_stock=stock.reserved_stock,
        available=stock.available,
    )


# ---------------------------------------------------------------------------
# Order Router (customer facing)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest, x_user_id: str = Header()) -> PlaceOrderResponse:
    command = PlaceOrder(
        customer_id=x_user_id,
        items=json.dumps([line.model_dump() for line in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        bnpl_provider=body.bnpl_provider,
        bnpl_reference=body.bnpl_reference,
        reward_points=body.reward_points,
        gift=json.dumps(body.gift.model_dump(exclude_none=True)) if body.gift else None,
        tax_price=body.tax_price,
        shipping_price=body.shipping_price,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = get_order(order_id)
    return PlaceOrderResponse(
        order_id=str(order.id),
        payment_status=order.payment_status,
        total_price=order.total_price,
        gateway_order_id=order.gateway_order_id,
    )


@order_router.get("", response_model=list[OrderResponse])
async def list_my_orders(x_user_id: str = Header()) -> list[OrderResponse]:
    return [_order_response(order) for order in list_orders_for_user(x_user_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(order_id: str, x_user_id: str = Header()) -> OrderResponse:
    return _order_response(get_order(order_id, customer_id=x_user_id))


@order_router.post("/{order_id}/payment/verify", response_model=PaymentOutcomeResponse)
async def verify_payment(order_id: str, body: VerifyPaymentRequest, x_user_id: str = Header()) -> PaymentOutcomeResponse:
    """Apply the client-side payment callback (redirect or poll)."""
    get_order(order_id, customer_id=x_user_id)
    command = ApplyVerifiedPayment(
        order_id=order_id,
        gateway_order_id=body.gateway_order_id,
        transaction_id=body.transaction_id,
        signature=body.signature,
    )
    outcome = current_domain.process(command, asynchronous=False)
    if outcome == PaymentOutcome.FAILED.value:
        raise PaymentVerificationFailed(
            {"signature": ["Payment could not be verified; retry the payment or choose another method"]}
        )
    return PaymentOutcomeResponse(order_id=order_id, outcome=outcome)


@order_router.post("/{order_id}/payment/retry", response_model=GatewayOrderResponse)
async def retry_payment(order_id: str, x_user_id: str = Header()) -> GatewayOrderResponse:
    command = RetryPayment(order_id=order_id, customer_id=x_user_id)
    gateway_order_id = current_domain.process(command, asynchronous=False)
    return GatewayOrderResponse(order_id=order_id, gateway_order_id=gateway_order_id)


@order_router.put("/{order_id}/payment/method", response_model=StatusResponse)
async def switch_payment_method(
    order_id: str, body: SwitchPaymentMethodRequest, x_user_id: str = Header()
) -> StatusResponse:
    command = SwitchPaymentMethod(
        order_id=order_id,
        customer_id=x_user_id,
        payment_method=body.payment_method,
        bnpl_provider=body.bnpl_provider,
        bnpl_reference=body.bnpl_reference,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, x_user_id: str = Header()) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, customer_id=x_user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


@order_router.post("/{order_id}/return", status_code=201, response_model=StatusResponse)
async def request_return(order_id: str, body: RequestReturnRequest, x_user_id: str = Header()) -> StatusResponse:
    command = RequestReturn(
        order_id=order_id,
        customer_id=x_user_id,
        request_type=body.request_type,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="requested")


# ---------------------------------------------------------------------------
# Payment Router (gateway callbacks)
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=PaymentOutcomeResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> PaymentOutcomeResponse:
    """Apply a server-to-server gateway confirmation."""
    gateway = get_gateway()
    if not gateway.verify_signature(body.gateway_order_id, body.transaction_id, x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    command = ApplyVerifiedPayment(
        order_id=body.order_id,
        gateway_order_id=body.gateway_order_id,
        transaction_id=body.transaction_id,
        signature=x_gateway_signature,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return PaymentOutcomeResponse(order_id=body.order_id, outcome=outcome)


@payment_router.post("/expire", response_model=CountResponse)
async def expire_abandoned_payments(older_than_minutes: int = 30) -> CountResponse:
    command = ExpireAbandonedPayments(older_than_minutes=older_than_minutes)
    count = current_domain.process(command, asynchronous=False)
    return CountResponse(count=count)


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_order_router.get("", response_model=list[OrderResponse])
async def list_orders(status: str) -> list[OrderResponse]:
    return [_order_response(order) for order in list_orders_by_status(status)]


@admin_order_router.put("/{order_id}/status", response_model=StatusResponse)
async def advance_order_status(order_id: str, body: AdvanceStatusRequest) -> StatusResponse:
    command = AdvanceOrderStatus(
        order_id=order_id,
        status=body.status,
        note=body.note,
        cod_collected=body.cod_collected,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.status)


@admin_order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def admin_cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse(status="cancelled")


@admin_order_router.put("/{order_id}/cod-collected", response_model=StatusResponse)
async def record_cod_collection(order_id: str) -> StatusResponse:
    current_domain.process(RecordCodCollection(order_id=order_id), asynchronous=False)
    return StatusResponse(status="collected")


@admin_order_router.put("/{order_id}/return", response_model=StatusResponse)
async def resolve_return(order_id: str, body: ResolveReturnRequestBody) -> StatusResponse:
    command = ResolveReturnRequest(order_id=order_id, approve=body.approve, admin_comment=body.admin_comment)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="approved" if body.approve else "rejected")


@admin_order_router.put("/{order_id}/return/complete", response_model=StatusResponse)
async def complete_return(order_id: str) -> StatusResponse:
    current_domain.process(CompleteReturnRequest(order_id=order_id), asynchronous=False)
    return StatusResponse(status="completed")


@admin_order_router.post("/{order_id}/agent", response_model=AgentAssignmentResponse)
async def assign_agent(order_id: str) -> AgentAssignmentResponse:
    agent_id = current_domain.process(AssignDeliveryAgent(order_id=order_id), asynchronous=False)
    return AgentAssignmentResponse(order_id=order_id, agent_id=agent_id)


@admin_order_router.put("/{order_id}/agent", response_model=AgentAssignmentResponse)
async def reassign_agent(order_id: str, body: ReassignAgentRequest) -> AgentAssignmentResponse:
    command = ReassignDeliveryAgent(order_id=order_id, agent_id=body.agent_id)
    agent_id = current_domain.process(command, asynchronous=False)
    return AgentAssignmentResponse(order_id=order_id, agent_id=agent_id)


# ---------------------------------------------------------------------------
# Pincode Router
# ---------------------------------------------------------------------------
pincode_router = APIRouter(prefix="/pincodes", tags=["pincodes"])


@pincode_router.get("/{code}/check", response_model=ServiceabilityResponse)
async def check_pincode(code: str) -> ServiceabilityResponse:
    result = check_serviceability(code)
    return ServiceabilityResponse(
        code=result.code,
        serviceable=result.serviceable,
        city=result.city,
        state=result.state,
        delivery_days=result.delivery_days,
        cod_available=result.cod_available,
    )


@pincode_router.get("", response_model=list[PincodeResponse])
async def get_pincodes(active_only: bool = False) -> list[PincodeResponse]:
    return [
        PincodeResponse(
            code=p.code,
            city=p.city,
            state=p.state,
            delivery_days=p.delivery_days,
            cod_available=p.cod_available,
            is_active=p.is_active,
        )
        for p in list_pincodes(active_only=active_only)
    ]


@pincode_router.post("", status_code=201, response_model=IdResponse)
async def add_pincode(body: AddPincodeRequest) -> IdResponse:
    command = AddPincode(
        code=body.code,
        city=body.city,
        state=body.state,
        delivery_days=body.delivery_days,
        cod_available=body.cod_available,
    )
    code = current_domain.process(command, asynchronous=False)
    return IdResponse(id=code)


@pincode_router.put("/{code}", response_model=StatusResponse)
async def update_pincode(code: str, body: UpdatePincodeRequest) -> StatusResponse:
    command = UpdatePincode(
        code=code,
        city=body.city,
        state=body.state,
        delivery_days=body.delivery_days,
        cod_available=body.cod_available,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@pincode_router.put("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_pincode(code: str) -> StatusResponse:
    current_domain.process(DeactivatePincode(code=code), asynchronous=False)
    return StatusResponse(status="inactive")


@pincode_router.put("/{code}/activate", response_model=StatusResponse)
async def activate_pincode(code: str) -> StatusResponse:
    current_domain.process(ActivatePincode(code=code), asynchronous=False)
    return StatusResponse(status="active")


# ---------------------------------------------------------------------------
# Reward Router
# ---------------------------------------------------------------------------
reward_router = APIRouter(prefix="/rewards", tags=["rewards"])


@reward_router.get("/balance", response_model=RewardBalanceResponse)
async def reward_balance(x_user_id: str = Header()) -> RewardBalanceResponse:
    ledger = rewards.get_ledger(x_user_id)
    return RewardBalanceResponse(
        user_id=x_user_id,
        balance=ledger.balance,
        available_points=ledger.available_points,
        total_earned=ledger.total_earned,
        total_redeemed=ledger.total_redeemed,
    )


@reward_router.get("/history", response_model=list[RewardTransactionResponse])
async def reward_history(x_user_id: str = Header()) -> list[RewardTransactionResponse]:
    return [
        RewardTransactionResponse(
            kind=txn.kind,
            points=txn.points,
            order_id=str(txn.order_id) if txn.order_id else None,
            description=txn.description,
            occurred_at=txn.occurred_at,
        )
        for txn in rewards.get_ledger(x_user_id).history()
    ]


# ---------------------------------------------------------------------------
# Warehouse Router
# ---------------------------------------------------------------------------
warehouse_router = APIRouter(prefix="/warehouses", tags=["warehouses"])


@warehouse_router.post("", status_code=201, response_model=IdResponse)
async def register_warehouse(body: RegisterWarehouseRequest) -> IdResponse:
    command = RegisterWarehouse(
        code=body.code,
        name=body.name,
        city=body.city,
        state=body.state,
        address=body.address,
        pincode=body.pincode,
        manager=body.manager,
        serviceable_pincodes=json.dumps(body.serviceable_pincodes),
    )
    warehouse_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=str(warehouse_id))


@warehouse_router.put("/{warehouse_id}/pincodes", response_model=StatusResponse)
async def update_serviceable_pincodes(warehouse_id: str, body: ServiceablePincodesRequest) -> StatusResponse:
    command = UpdateServiceablePincodes(
        warehouse_id=warehouse_id,
        serviceable_pincodes=json.dumps(body.serviceable_pincodes),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@warehouse_router.put("/{warehouse_id}/deactivate", response_model=StatusResponse)
async def deactivate_warehouse(warehouse_id: str) -> StatusResponse:
    current_domain.process(DeactivateWarehouse(warehouse_id=warehouse_id), asynchronous=False)
    return StatusResponse(status="inactive")


@warehouse_router.get("/{warehouse_id}/stock", response_model=list[StockResponse])
async def warehouse_stock(warehouse_id: str) -> list[StockResponse]:
    return [_stock_response(stock) for stock in list_stock(warehouse_id)]


@warehouse_router.get("/{warehouse_id}/stock/{product_id}", response_model=StockResponse)
async def product_stock(warehouse_id: str, product_id: str) -> StockResponse:
    stock = get_stock(warehouse_id, product_id)
    if stock is None:
        raise HTTPException(status_code=404, detail=f"No stock record for {product_id} at {warehouse_id}")
    return _stock_response(stock)


@warehouse_router.put("/{warehouse_id}/stock/{product_id}", response_model=StatusResponse)
async def set_stock_level(warehouse_id: str, product_id: str, body: SetStockLevelRequest) -> StatusResponse:
    command = SetStockLevel(warehouse_id=warehouse_id, product_id=product_id, stock=body.stock)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Delivery Agent Router
# ---------------------------------------------------------------------------
agent_router = APIRouter(prefix="/agents", tags=["agents"])


@agent_router.post("", status_code=201, response_model=IdResponse)
async def register_agent(body: RegisterAgentRequest) -> IdResponse:
    command = RegisterDeliveryAgent(
        name=body.name,
        email=body.email,
        phone=body.phone,
        assigned_area=body.assigned_area,
        assigned_pincodes=json.dumps(body.assigned_pincodes),
    )
    agent_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=str(agent_id))


@agent_router.get("", response_model=list[AgentResponse])
async def get_agents(active_only: bool = False) -> list[AgentResponse]:
    return [_agent_response(agent) for agent in list_agents(active_only=active_only)]


@agent_router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent_stats(agent_id: str) -> AgentResponse:
    return _agent_response(current_domain.repository_for(DeliveryAgent).get(agent_id))


@agent_router.get("/{agent_id}/orders", response_model=list[OrderResponse])
async def get_agent_orders(agent_id: str, include_delivered: bool = True) -> list[OrderResponse]:
    return [_order_response(order) for order in list_orders_for_agent(agent_id, include_delivered)]


@agent_router.put("/{agent_id}/coverage", response_model=StatusResponse)
async def update_agent_coverage(agent_id: str, body: UpdateAgentCoverageRequest) -> StatusResponse:
    command = UpdateAgentCoverage(
        agent_id=agent_id,
        assigned_area=body.assigned_area,
        assigned_pincodes=json.dumps(body.assigned_pincodes) if body.assigned_pincodes is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@agent_router.put("/{agent_id}/deactivate", response_model=StatusResponse)
async def deactivate_agent(agent_id: str) -> StatusResponse:
    current_domain.process(DeactivateDeliveryAgent(agent_id=agent_id), asynchronous=False)
    return StatusResponse(status="inactive")


# ---------------------------------------------------------------------------
# Fake gateway controls (non-production only)
# ---------------------------------------------------------------------------
@payment_router.post("/gateway/configure", response_model=StatusResponse)
async def configure_gateway(configured: bool = True, refunds_succeed: bool = True) -> StatusResponse:
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")
    gateway.configure(configured=configured, refunds_succeed=refunds_succeed)
    return StatusResponse(status="configured")
