"""
GreenPantry API — Restaurant and menu services
"""
import logging
from itertools import groupby
from typing import Sequence

from app.core.exceptions import NotFound
from app.core.policy import authorize
from app.core.security import CurrentUser
from app.db.database import utcnow
from app.models.restaurant import MenuItem, Restaurant, RestaurantStatus
from app.models.user import UserRole
from app.repositories.restaurant import MenuItemRepository, RestaurantRepository
from app.schemas.restaurant import (
    MenuCategory,
    MenuItemRequest,
    MenuItemResponse,
    RestaurantFilter,
    RestaurantRequest,
)

logger = logging.getLogger(__name__)


class RestaurantService:
    def __init__(self, restaurants: RestaurantRepository):
        self.restaurants = restaurants

    async def search(self, filter: RestaurantFilter) -> Sequence[Restaurant]:
        logger.info("Getting restaurants with filter: %s", filter.model_dump(exclude_none=True))

        found = await self.restaurants.search(
            city=filter.city, min_rating=filter.min_rating, search_term=filter.search_term
        )
        if filter.cuisine_type:
            wanted = filter.cuisine_type.lower()
            found = [r for r in found if wanted in (c.lower() for c in r.cuisine_types)]

        start = (filter.page - 1) * filter.page_size
        return found[start:start + filter.page_size]

    async def get(self, restaurant_id: str) -> Restaurant:
        logger.info("Getting restaurant by ID: %s", restaurant_id)
        restaurant = await self.restaurants.get_by_id(restaurant_id)
        if restaurant is None or restaurant.is_deleted or not restaurant.is_active:
            raise NotFound(f"Restaurant with ID {restaurant_id} not found")
        return restaurant

    async def list_by_owner(self, owner_id: str) -> Sequence[Restaurant]:
        logger.info("Getting restaurants by owner: %s", owner_id)
        return await self.restaurants.get_by_owner(owner_id)

    async def create(self, request: RestaurantRequest, user: CurrentUser) -> Restaurant:
        logger.info("Creating new restaurant: %s", request.name)
        authorize("restaurant:create", user)

        owner_id = user.id
        if user.role == UserRole.ADMIN.value and request.owner_id:
            owner_id = request.owner_id

        restaurant = Restaurant(
            **request.model_dump(exclude={"owner_id"}),
            owner_id=owner_id,
            status=RestaurantStatus.PENDING,
        )
        return await self.restaurants.create(restaurant)

    async def update(self, restaurant_id: str, request: RestaurantRequest, user: CurrentUser) -> Restaurant:
        logger.info("Updating restaurant: %s", restaurant_id)
        restaurant = await self._get_any(restaurant_id)
        authorize("restaurant:write", user, owner_id=restaurant.owner_id)

        for field, value in request.model_dump(exclude={"owner_id"}).items():
            setattr(restaurant, field, value)
        restaurant.updated_at = utcnow()
        return await self.restaurants.update(restaurant)

    async def delete(self, restaurant_id: str, user: CurrentUser) -> None:
        logger.info("Deleting restaurant: %s", restaurant_id)
        restaurant = await self._get_any(restaurant_id)
        authorize("restaurant:write", user, owner_id=restaurant.owner_id)
        await self.restaurants.soft_delete(restaurant_id)

    async def _get_any(self, restaurant_id: str) -> Restaurant:
        restaurant = await self.restaurants.get_by_id(restaurant_id)
        if restaurant is None or restaurant.is_deleted:
            raise NotFound(f"Restaurant with ID {restaurant_id} not found")
        return restaurant


class MenuService:
    def __init__(self, menu_items: MenuItemRepository, restaurants: RestaurantRepository):
        self.menu_items = menu_items
        self.restaurants = restaurants

    async def menu_for_restaurant(self, restaurant_id: str) -> list[MenuCategory]:
        logger.info("Getting menu for restaurant: %s", restaurant_id)
        items = [
            item for item in await self.menu_items.get_by_restaurant(restaurant_id)
            if item.is_available
        ]
        # repository already orders by category, so groupby sees each category once
        return [
            MenuCategory(
                category=category,
                items=[MenuItemResponse.model_validate(item) for item in group],
            )
            for category, group in groupby(items, key=lambda item: item.category)
        ]

    async def get_item(self, menu_item_id: str) -> MenuItem:
        logger.info("Getting menu item: %s", menu_item_id)
        item = await self.menu_items.get_by_id(menu_item_id)
        if item is None or item.is_deleted:
            raise NotFound(f"Menu item with ID {menu_item_id} not found")
        return item

    async def create_item(self, request: MenuItemRequest, user: CurrentUser) -> MenuItem:
        logger.info("Creating menu item %s for restaurant %s", request.name, request.restaurant_id)
        restaurant = await self._restaurant(request.restaurant_id)
        authorize("menu:write", user, owner_id=restaurant.owner_id)
        values = request.model_dump(mode="json")
        values["price"] = request.price
        return await self.menu_items.create(MenuItem(**values))

    async def update_item(self, menu_item_id: str, request: MenuItemRequest, user: CurrentUser) -> MenuItem:
        logger.info("Updating menu item: %s", menu_item_id)
        item = await self.get_item(menu_item_id)
        restaurant = await self._restaurant(item.restaurant_id)
        authorize("menu:write", user, owner_id=restaurant.owner_id)

        values = request.model_dump(mode="json", exclude={"restaurant_id"})
        values["price"] = request.price
        for field, value in values.items():
            setattr(item, field, value)
        item.updated_at = utcnow()
        return await self.menu_items.update(item)

    async def delete_item(self, menu_item_id: str, user: CurrentUser) -> None:
        logger.info("Deleting menu item: %s", menu_item_id)
        item = await self.get_item(menu_item_id)
        restaurant = await self._restaurant(item.restaurant_id)
        authorize("menu:write", user, owner_id=restaurant.owner_id)
        await self.menu_items.soft_delete(menu_item_id)

    async def _restaurant(self, restaurant_id: str) -> Restaurant:
        restaurant = await self.restaurants.get_by_id(restaurant_id)
        if restaurant is None or restaurant.is_deleted:
            raise NotFound(f"Restaurant with ID {restaurant_id} not found")
        return restaurant
