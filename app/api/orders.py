"""
GreenPantry API — Orders API

  1. JWT validated by middleware (request.state.user set)
  2. Idempotent placement handled by IdempotencyMiddleware
  3. Authorization decided by the policy table, business rules by OrderService
"""
from functools import partial

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from app.api.deps import get_current_user, get_order_service, require
from app.core.exceptions import ValidationFailed
from app.core.policy import authorize
from app.core.redis_client import get_redis
from app.core.security import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.order import CreateOrderRequest, OrderResponse, UpdateOrderStatusRequest
from app.services.order_events import stream_order_events
from app.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: CreateOrderRequest,
    user: CurrentUser = Depends(require("order:create")),
    service: OrderService = Depends(get_order_service),
):
    """Place an order; every line must reference an available menu item."""
    return await service.create(payload, user.id)


@router.get("/user/{user_id}", response_model=list[OrderResponse])
async def get_orders_by_user(
    user_id: str,
    user: CurrentUser = Depends(require("order:list_by_user")),
    service: OrderService = Depends(get_order_service),
):
    return await service.list_by_user(user_id)


@router.get("/restaurant/{restaurant_id}", response_model=list[OrderResponse])
async def get_orders_by_restaurant(
    restaurant_id: str,
    user: CurrentUser = Depends(require("order:list_by_restaurant")),
    service: OrderService = Depends(get_order_service),
):
    return await service.list_by_restaurant(restaurant_id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_by_id(order_id)
    authorize("order:read", user, owner_id=order.user_id)
    return order


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: UpdateOrderStatusRequest,
    user: CurrentUser = Depends(require("order:update_status")),
    service: OrderService = Depends(get_order_service),
):
    return await service.update_status(order_id, payload.status, payload.notes, user.id)


@router.post("/{order_id}/cancel", response_model=MessageResponse)
async def cancel_order(
    order_id: str,
    user: CurrentUser = Depends(require("order:cancel")),
    service: OrderService = Depends(get_order_service),
):
    if not await service.cancel(order_id, user.id):
        raise ValidationFailed("Order cannot be cancelled")
    return MessageResponse(message="Order cancelled successfully")


@router.get("/{order_id}/events")
async def order_events(
    order_id: str,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """
    SSE stream of the order's status. The browser opens an EventSource here
    and receives order_update events until the order is Delivered or Cancelled.
    """
    order = await service.get_by_id(order_id)
    authorize("order:track", user, owner_id=order.user_id)

    return StreamingResponse(
        stream_order_events(
            order.id,
            partial(service.current_state, order),
            get_redis(),
            request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "Connection": "keep-alive",
        },
    )
