"""
GreenPantry API — User profile service
"""
import logging
from typing import Sequence

from app.core.exceptions import NotFound
from app.db.database import utcnow
from app.models.order import Order
from app.models.user import User
from app.repositories.order import OrderRepository
from app.repositories.user import UserRepository
from app.schemas.auth import UpdateProfileRequest
from app.schemas.common import Address

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, users: UserRepository, orders: OrderRepository):
        self.users = users
        self.orders = orders

    async def get_profile(self, user_id: str) -> User:
        logger.info("Getting user by ID: %s", user_id)
        user = await self.users.get_by_id(user_id)
        if user is None or user.is_deleted:
            raise NotFound(f"User with ID {user_id} not found")
        return user

    async def update_profile(self, user_id: str, request: UpdateProfileRequest) -> User:
        logger.info("Updating user profile: %s", user_id)
        user = await self.get_profile(user_id)
        user.first_name = request.first_name
        user.last_name = request.last_name
        user.phone_number = request.phone_number
        if request.address is not None:
            user.address = request.address.model_dump()
        user.updated_at = utcnow()
        return await self.users.update(user)

    async def update_address(self, user_id: str, address: Address) -> User:
        logger.info("Updating user address: %s", user_id)
        user = await self.get_profile(user_id)
        user.address = address.model_dump()
        user.updated_at = utcnow()
        return await self.users.update(user)

    async def order_history(self, user_id: str) -> Sequence[Order]:
        logger.info("Getting order history for user: %s", user_id)
        return await self.orders.get_by_user(user_id)
