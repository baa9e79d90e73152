"""Pydantic request/response schemas for the Checkout API.

These are external contracts, kept apart from the protean commands they
are translated into.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str
    phone: str
    address: str
    city: str
    state: str | None = None
    pincode: str
    country: str = "India"


class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class GiftSchema(BaseModel):
    is_gift: bool = False
    wrapping_type: str | None = None
    message: str | None = Field(default=None, max_length=250)
    hide_price: bool = False


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderLineSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    payment_method: str
    bnpl_provider: str | None = None
    bnpl_reference: str | None = None
    reward_points: int = Field(ge=0, default=0)
    gift: GiftSchema | None = None
    tax_price: float = Field(ge=0, default=0.0)
    shipping_price: float = Field(ge=0, default=0.0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "ring-001", "quantity": 1}],
                    "shipping_address": {
                        "full_name": "Asha Rao",
                        "phone": "9876543210",
                        "address": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                    },
                    "payment_method": "Gateway",
                    "reward_points": 500,
                }
            ]
        }
    }


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str
    transaction_id: str
    signature: str


class PaymentWebhookRequest(BaseModel):
    order_id: str
    gateway_order_id: str
    transaction_id: str


class SwitchPaymentMethodRequest(BaseModel):
    payment_method: str
    bnpl_provider: str | None = None
    bnpl_reference: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255)


class RequestReturnRequest(BaseModel):
    request_type: str
    reason: str = Field(min_length=1, max_length=500)


class AdvanceStatusRequest(BaseModel):
    status: str
    note: str | None = None
    cod_collected: bool = False


class ResolveReturnRequestBody(BaseModel):
    approve: bool
    admin_comment: str | None = None


class ReassignAgentRequest(BaseModel):
    agent_id: str


# ---------------------------------------------------------------------------
# Pincode / Warehouse / Agent Request Schemas
# ---------------------------------------------------------------------------
class AddPincodeRequest(BaseModel):
    code: str
    city: str
    state: str
    delivery_days: int | None = Field(default=None, ge=1)
    cod_available: bool = True


class UpdatePincodeRequest(BaseModel):
    city: str | None = None
    state: str | None = None
    delivery_days: int | None = Field(default=None, ge=1)
    cod_available: bool | None = None


class RegisterWarehouseRequest(BaseModel):
    code: str
    name: str
    city: str
    state: str | None = None
    address: str | None = None
    pincode: str | None = None
    manager: str | None = None
    serviceable_pincodes: list[str] = Field(default_factory=list)


class ServiceablePincodesRequest(BaseModel):
    serviceable_pincodes: list[str]


class SetStockLevelRequest(BaseModel):
    stock: int = Field(ge=0)


class RegisterAgentRequest(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    assigned_area: str | None = None
    assigned_pincodes: list[str] = Field(default_factory=list)


class UpdateAgentCoverageRequest(BaseModel):
    assigned_area: str | None = None
    assigned_pincodes: list[str] | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class PlaceOrderResponse(BaseModel):
    order_id: str
    payment_status: str
    total_price: float
    gateway_order_id: str | None = None


class GatewayOrderResponse(BaseModel):
    order_id: str
    gateway_order_id: str | None = None


class PaymentOutcomeResponse(BaseModel):
    order_id: str
    outcome: str


class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class CountResponse(BaseModel):
    count: int


class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int
    image: str | None = None


class TimelineEntryResponse(BaseModel):
    status: str
    note: str | None = None
    recorded_at: datetime


class ReturnRequestResponse(BaseModel):
    request_type: str
    reason: str
    status: str
    admin_comment: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    payment_method: str
    payment_status: str
    items: list[OrderItemResponse]
    items_price: float
    discount_amount: float
    tax_price: float
    shipping_price: float
    total_price: float
    redeemed_points: int
    estimated_delivery: date | None = None
    delivery_agent_id: str | None = None
    is_gift: bool = False
    timeline: list[TimelineEntryResponse]
    return_request: ReturnRequestResponse | None = None


class ServiceabilityResponse(BaseModel):
    code: str
    serviceable: bool
    city: str | None = None
    state: str | None = None
    delivery_days: int | None = None
    cod_available: bool = False


class PincodeResponse(BaseModel):
    code: str
    city: str
    state: str
    delivery_days: int
    cod_available: bool
    is_active: bool


class RewardBalanceResponse(BaseModel):
    user_id: str
    balance: int
    available_points: int
    total_earned: int
    total_redeemed: int


class RewardTransactionResponse(BaseModel):
    kind: str
    points: int
    order_id: str | None = None
    description: str | None = None
    occurred_at: datetime


class StockResponse(BaseModel):
    warehouse_id: str
    product_id: str
    stock: int
    reserved_stock: int
    available: int


class AgentResponse(BaseModel):
    agent_id: str
    name: str
    assigned_area: str | None = None
    assigned_pincodes: list[str]
    is_active: bool
    active_orders: int
    total_delivered: int
    total_assigned: int


class AgentAssignmentResponse(BaseModel):
    order_id: str
    agent_id: str | None = None
