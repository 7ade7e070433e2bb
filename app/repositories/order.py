"""
GreenPantry API — Order repository (partitioned by owning user id)
"""
import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.models.order import Order
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class OrderRepository(BaseRepository[Order]):
    model = Order
    partition_field = "user_id"

    async def get_by_user(self, user_id: str) -> Sequence[Order]:
        """Non-deleted orders of one user, newest first."""
        query = (
            select(Order)
            .where(Order.user_id == user_id, Order.is_deleted.is_(False))
            .order_by(Order.created_at.desc())
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError:
            logger.exception("Error getting orders by user: %s", user_id)
            raise
        return result.scalars().all()

    async def get_by_restaurant(self, restaurant_id: str) -> Sequence[Order]:
        """Non-deleted orders placed at one restaurant, newest first."""
        query = (
            select(Order)
            .where(Order.restaurant_id == restaurant_id, Order.is_deleted.is_(False))
            .order_by(Order.created_at.desc())
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError:
            logger.exception("Error getting orders by restaurant: %s", restaurant_id)
            raise
        return result.scalars().all()
