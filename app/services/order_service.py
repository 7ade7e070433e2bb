"""
GreenPantry API — Order service

Owns order pricing and the order status state machine:

  create        validate every line against the menu, price it, persist once
  update_status move along ALLOWED_TRANSITIONS, append one history entry
  cancel        owner-only, refused once Delivered or Cancelled

Line items and totals are captured at creation and never recomputed.
"""
import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from app.core.config import get_settings
from app.core.exceptions import InvalidStatusTransition, ItemUnavailable, NotFound
from app.db.database import new_id, utcnow
from app.models.order import TERMINAL_STATUSES, Order, OrderStatus, can_transition
from app.repositories.order import OrderRepository
from app.repositories.restaurant import MenuItemRepository, RestaurantRepository
from app.schemas.order import CreateOrderRequest, OrderLine, StatusHistoryEntry
from app.schemas.payment import PaymentStatus
from app.services.order_events import OrderEventPublisher, event_payload

settings = get_settings()
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Once settled, a payment only moves on to these; late or replayed gateway results are ignored
SETTLED_PAYMENT_FOLLOW_UPS: dict[str, frozenset[PaymentStatus]] = {
    PaymentStatus.COMPLETED.value: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED.value: frozenset(),
}


def compute_totals(
    subtotal: Decimal,
    delivery_fee: Decimal | None = None,
    tax_rate: Decimal | None = None,
) -> tuple[Decimal, Decimal, Decimal]:
    """Return (delivery_fee, tax, total) for a subtotal; tax is rounded to cents."""
    fee = settings.ORDER_DELIVERY_FEE if delivery_fee is None else delivery_fee
    rate = settings.ORDER_TAX_RATE if tax_rate is None else tax_rate
    tax = (subtotal * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    return fee, tax, subtotal + fee + tax


def generate_order_number(now: datetime) -> str:
    # 100ns ticks since the epoch, last five digits as the per-day counter
    ticks = int(now.timestamp() * 10_000_000)
    return f"{settings.ORDER_NUMBER_PREFIX}{now:%Y%m%d}{ticks % 100_000:05d}"


def history_entry(status: OrderStatus, timestamp: datetime, notes: str, updated_by: str) -> dict:
    return StatusHistoryEntry(
        status=status, timestamp=timestamp, notes=notes, updated_by=updated_by
    ).model_dump(mode="json")


class OrderService:
    def __init__(
        self,
        orders: OrderRepository,
        menu_items: MenuItemRepository,
        restaurants: RestaurantRepository,
        events: OrderEventPublisher | None = None,
    ):
        self.orders = orders
        self.menu_items = menu_items
        self.restaurants = restaurants
        self.events = events

    async def create(self, request: CreateOrderRequest, user_id: str) -> Order:
        logger.info("Creating order for user: %s", user_id)

        lines: list[OrderLine] = []
        subtotal = Decimal("0")
        for item in request.items:
            menu_item = await self.menu_items.get_by_id(item.menu_item_id)
            if (
                menu_item is None
                or menu_item.is_deleted
                or not menu_item.is_available
                or menu_item.restaurant_id != request.restaurant_id
            ):
                raise ItemUnavailable(item.menu_item_id)

            line_total = menu_item.price * item.quantity
            lines.append(OrderLine(
                menu_item_id=item.menu_item_id,
                menu_item_name=menu_item.name,
                quantity=item.quantity,
                unit_price=menu_item.price,
                total_price=line_total,
                variant=item.variant,
                special_instructions=item.special_instructions,
            ))
            subtotal += line_total

        delivery_fee, tax, total = compute_totals(subtotal)
        now = utcnow()
        restaurant = await self.restaurants.get_by_id(request.restaurant_id)
        estimated_delivery_time = (
            now + timedelta(minutes=restaurant.estimated_delivery_time) if restaurant else None
        )
        order = Order(
            id=new_id(),
            user_id=user_id,
            restaurant_id=request.restaurant_id,
            order_number=generate_order_number(now),
            status=OrderStatus.PENDING,
            items=[line.model_dump(mode="json") for line in lines],
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            tax=tax,
            total=total,
            delivery_address=(
                request.delivery_address.model_dump() if request.delivery_address else None
            ),
            payment_method=request.payment_method,
            payment_status=PaymentStatus.PENDING.value,
            delivery_instructions=request.delivery_instructions,
            estimated_delivery_time=estimated_delivery_time,
            status_history=[history_entry(OrderStatus.PENDING, now, "Order created", user_id)],
            created_at=now,
            updated_at=now,
        )

        created = await self.orders.create(order)
        logger.info("Order created successfully with ID: %s", created.id)
        await self._publish(created)
        return created

    async def get_by_id(self, order_id: str) -> Order:
        logger.info("Getting order by ID: %s", order_id)
        order = await self.orders.get_by_id(order_id)
        if order is None or order.is_deleted:
            raise NotFound(f"Order with ID {order_id} not found")
        return order

    async def current_state(self, order: Order) -> dict:
        """Status event payload built from a fresh read of the order."""
        current = await self.orders.reload(order.id, partition_key=order.user_id)
        if current is None or current.is_deleted:
            raise NotFound(f"Order with ID {order.id} not found")
        return event_payload(current)

    async def list_by_user(self, user_id: str) -> Sequence[Order]:
        logger.info("Getting orders for user: %s", user_id)
        return await self.orders.get_by_user(user_id)

    async def list_by_restaurant(self, restaurant_id: str) -> Sequence[Order]:
        logger.info("Getting orders for restaurant: %s", restaurant_id)
        return await self.orders.get_by_restaurant(restaurant_id)

    async def update_status(
        self, order_id: str, new_status: OrderStatus, notes: str, actor_id: str
    ) -> Order:
        logger.info("Updating order status: %s to %s", order_id, new_status.value)

        order = await self.get_by_id(order_id)
        if not can_transition(order.status, new_status):
            raise InvalidStatusTransition(order.status.value, new_status.value)

        self._record_status(order, new_status, notes, actor_id)
        updated = await self.orders.update(order)
        await self._publish(updated)
        return updated

    async def cancel(self, order_id: str, user_id: str) -> bool:
        logger.info("Cancelling order: %s by user: %s", order_id, user_id)

        order = await self.orders.get_by_id(order_id)
        if order is None or order.is_deleted or order.user_id != user_id:
            return False
        if order.status in TERMINAL_STATUSES:
            return False

        self._record_status(order, OrderStatus.CANCELLED, "Order cancelled by user", user_id)
        updated = await self.orders.update(order)
        await self._publish(updated)
        return True

    async def apply_payment_result(
        self, order_id: str, payment_id: str, payment_status: PaymentStatus, provider: str
    ) -> Order:
        """Record a gateway outcome; a completed payment confirms a pending order."""
        logger.info(
            "Applying %s payment %s (%s) to order %s",
            provider, payment_id, payment_status.value, order_id,
        )

        order = await self.get_by_id(order_id)
        settled = SETTLED_PAYMENT_FOLLOW_UPS.get(order.payment_status)
        if settled is not None and payment_status not in settled:
            logger.warning(
                "Ignoring %s result for order %s, payment already %s",
                payment_status.value, order_id, order.payment_status,
            )
            return order

        order.payment_id = payment_id
        order.payment_status = payment_status.value
        order.updated_at = utcnow()

        confirmed = (
            payment_status is PaymentStatus.COMPLETED
            and order.status is OrderStatus.PENDING
        )
        if confirmed:
            self._record_status(
                order, OrderStatus.CONFIRMED, f"Payment received via {provider}", f"payment:{provider}"
            )

        updated = await self.orders.update(order)
        if confirmed:
            await self._publish(updated)
        return updated

    @staticmethod
    def _record_status(order: Order, status: OrderStatus, notes: str, actor_id: str) -> None:
        now = utcnow()
        order.status = status
        order.updated_at = now
        # reassign rather than append so the JSON column is flagged dirty
        order.status_history = [*order.status_history, history_entry(status, now, notes, actor_id)]

    async def _publish(self, order: Order) -> None:
        if self.events is not None:
            await self.events.publish(order)
