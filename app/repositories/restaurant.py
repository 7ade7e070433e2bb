"""
GreenPantry API — Restaurant and menu item repositories
"""
from typing import Sequence

from sqlalchemy import func, or_, select

from app.models.restaurant import MenuItem, Restaurant, RestaurantStatus
from app.repositories.base import BaseRepository

LISTED_STATUSES = (RestaurantStatus.APPROVED, RestaurantStatus.PENDING)


class RestaurantRepository(BaseRepository[Restaurant]):
    model = Restaurant

    async def search(
        self,
        city: str | None = None,
        min_rating: float | None = None,
        search_term: str | None = None,
    ) -> Sequence[Restaurant]:
        """Active, listed restaurants matching the column filters, best rated first."""
        query = select(Restaurant).where(
            Restaurant.is_deleted.is_(False),
            Restaurant.is_active.is_(True),
            Restaurant.status.in_(LISTED_STATUSES),
        )
        if city:
            query = query.where(func.lower(Restaurant.city) == city.lower())
        if min_rating is not None:
            query = query.where(Restaurant.rating >= min_rating)
        if search_term:
            pattern = f"%{search_term.lower()}%"
            query = query.where(
                or_(
                    func.lower(Restaurant.name).like(pattern),
                    func.lower(Restaurant.description).like(pattern),
                )
            )
        result = await self.db.execute(query.order_by(Restaurant.rating.desc(), Restaurant.name))
        return result.scalars().all()

    async def get_by_owner(self, owner_id: str) -> Sequence[Restaurant]:
        result = await self.db.execute(
            select(Restaurant)
            .where(Restaurant.owner_id == owner_id, Restaurant.is_deleted.is_(False))
            .order_by(Restaurant.created_at.desc())
        )
        return result.scalars().all()


class MenuItemRepository(BaseRepository[MenuItem]):
    model = MenuItem

    async def get_by_restaurant(self, restaurant_id: str) -> Sequence[MenuItem]:
        result = await self.db.execute(
            select(MenuItem)
            .where(MenuItem.restaurant_id == restaurant_id, MenuItem.is_deleted.is_(False))
            .order_by(MenuItem.category, MenuItem.name)
        )
        return result.scalars().all()
