"""
GreenPantry API — Order model and status state machine

An order is stored as one document: line items, the delivery address and the
append-only status history live in JSON columns next to the computed totals.
Orders are partitioned by the owning user's id.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import JSON, Enum, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base, DocumentMixin, UTCDateTime


class OrderStatus(str, PyEnum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "ReadyForPickup"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# ── Allowed status transitions ────────────────────────────────────────────────
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.CANCELLED,
    }),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({
        OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED,
    }),
    OrderStatus.READY_FOR_PICKUP: frozenset({
        OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED,
    }),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


class Order(DocumentMixin, Base):
    __tablename__ = "orders"

    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)  # partition key
    restaurant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    order_number: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"), default=OrderStatus.PENDING, nullable=False
    )
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_address: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    payment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False, default="Pending")
    delivery_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_delivery_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Order number={self.order_number} status={self.status}>"
