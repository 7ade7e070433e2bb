"""
GreenPantry API — Order status events over Redis pub/sub

Every status change is published to channel order:{order_id}; the order
tracking stream subscribes to the same channel.
"""
import json
import logging
from typing import AsyncIterator, Awaitable, Callable

import redis.asyncio as aioredis

from app.core.config import get_settings
from app.models.order import TERMINAL_STATUSES, Order

settings = get_settings()
logger = logging.getLogger(__name__)

CHANNEL = "order:{order_id}"
TERMINAL_VALUES = frozenset(status.value for status in TERMINAL_STATUSES)


def channel_for(order_id: str) -> str:
    return CHANNEL.format(order_id=order_id)


def event_payload(order: Order) -> dict:
    last = order.status_history[-1] if order.status_history else {}
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status.value,
        "notes": last.get("notes", ""),
        "updated_by": last.get("updated_by", ""),
        "timestamp": order.updated_at.isoformat() if order.updated_at else None,
    }


class OrderEventPublisher:
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def publish(self, order: Order) -> None:
        try:
            await self.redis.publish(channel_for(order.id), json.dumps(event_payload(order)))
        except Exception as exc:
            # Status tracking is best effort; the order update itself already committed
            logger.warning("Could not publish status event for order %s: %s", order.id, exc)


def format_event(payload: dict) -> str:
    return f"event: order_update\ndata: {json.dumps(payload)}\n\n"


async def stream_order_events(
    order_id: str,
    load_state: Callable[[], Awaitable[dict]],
    redis: aioredis.Redis,
    is_disconnected: Callable[[], Awaitable[bool]],
) -> AsyncIterator[str]:
    """
    Server-sent events for one order: its current state first, then every
    published change until the order reaches a terminal status or the client
    goes away.

    The channel is subscribed before load_state() reads the order, so a change
    committed in between is still delivered after the snapshot.
    """
    channel = channel_for(order_id)
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel)

    try:
        yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"
        state = await load_state()
        yield format_event(state)
        if state["status"] in TERMINAL_VALUES:
            return

        while not await is_disconnected():
            message = await pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=settings.ORDER_EVENTS_KEEPALIVE_SECONDS,
            )
            if message is None or message["type"] != "message":
                yield ": keepalive\n\n"
                continue

            try:
                payload = json.loads(message["data"])
            except ValueError:
                logger.warning("Dropping malformed event on %s", channel)
                continue

            # already part of the snapshot
            if payload == state:
                continue

            yield format_event(payload)
            if payload.get("status") in TERMINAL_VALUES:
                break
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
