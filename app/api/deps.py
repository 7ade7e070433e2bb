"""
GreenPantry API — Request dependencies

Services are assembled per request around the request's own AsyncSession.
"""
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotAuthenticated
from app.core.policy import authorize
from app.core.redis_client import get_redis
from app.core.security import CurrentUser
from app.db.database import get_db
from app.repositories.order import OrderRepository
from app.repositories.restaurant import MenuItemRepository, RestaurantRepository
from app.repositories.user import UserRepository
from app.services.auth_service import AuthService
from app.services.order_events import OrderEventPublisher
from app.services.order_service import OrderService
from app.services.restaurant_service import MenuService, RestaurantService
from app.services.user_service import UserService


def get_current_user(request: Request) -> CurrentUser:
    claims = getattr(request.state, "user", None)
    if not claims or "sub" not in claims:
        raise NotAuthenticated()
    return CurrentUser.from_claims(claims)


def require(operation: str) -> Callable[..., CurrentUser]:
    """Dependency that resolves the caller and checks a role-only policy rule."""

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        authorize(operation, user)
        return user

    return dependency


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(
        OrderRepository(db),
        MenuItemRepository(db),
        RestaurantRepository(db),
        OrderEventPublisher(get_redis()),
    )


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db), OrderRepository(db))


def get_restaurant_service(db: AsyncSession = Depends(get_db)) -> RestaurantService:
    return RestaurantService(RestaurantRepository(db))


def get_menu_service(db: AsyncSession = Depends(get_db)) -> MenuService:
    return MenuService(MenuItemRepository(db), RestaurantRepository(db))
