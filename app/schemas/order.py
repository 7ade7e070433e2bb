"""
GreenPantry API — Order schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from app.models.order import OrderStatus
from app.schemas.common import Address, CamelModel


class OrderItemRequest(CamelModel):
    menu_item_id: str = Field(..., min_length=1, examples=["m1"])
    quantity: int = Field(..., ge=1, le=50)
    variant: str = Field("", max_length=100)
    special_instructions: str = Field("", max_length=500)


class CreateOrderRequest(CamelModel):
    restaurant_id: str = Field(..., min_length=1)
    items: list[OrderItemRequest] = Field(..., min_length=1, max_length=50)
    delivery_address: Address | None = None
    payment_method: str = Field("", max_length=32)
    delivery_instructions: str | None = Field(None, max_length=500)


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus
    notes: str = Field("", max_length=500)


class OrderLine(CamelModel):
    """A line item as captured when the order was placed."""

    menu_item_id: str
    menu_item_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    variant: str = ""
    special_instructions: str = ""


class StatusHistoryEntry(CamelModel):
    status: OrderStatus
    timestamp: datetime
    notes: str = ""
    updated_by: str


class OrderResponse(CamelModel):
    id: str
    user_id: str
    restaurant_id: str
    order_number: str
    status: OrderStatus
    items: list[OrderLine]
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal
    delivery_address: Address | None = None
    payment_method: str
    payment_id: str | None = None
    payment_status: str
    delivery_instructions: str | None = None
    estimated_delivery_time: datetime | None = None
    status_history: list[StatusHistoryEntry]
    created_at: datetime
    updated_at: datetime
