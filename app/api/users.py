"""
GreenPantry API — Current user's profile, address, order history and owned restaurants
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_restaurant_service, get_user_service, require
from app.core.security import CurrentUser
from app.schemas.auth import UpdateProfileRequest, UserResponse
from app.schemas.common import Address
from app.schemas.order import OrderResponse
from app.schemas.restaurant import RestaurantDetailResponse
from app.services.restaurant_service import RestaurantService
from app.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    user: CurrentUser = Depends(require("profile:manage")),
    service: UserService = Depends(get_user_service),
):
    return await service.get_profile(user.id)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: UpdateProfileRequest,
    user: CurrentUser = Depends(require("profile:manage")),
    service: UserService = Depends(get_user_service),
):
    return await service.update_profile(user.id, payload)


@router.put("/address", response_model=UserResponse)
async def update_address(
    payload: Address,
    user: CurrentUser = Depends(require("profile:manage")),
    service: UserService = Depends(get_user_service),
):
    return await service.update_address(user.id, payload)


@router.get("/orders", response_model=list[OrderResponse])
async def get_order_history(
    user: CurrentUser = Depends(require("profile:manage")),
    service: UserService = Depends(get_user_service),
):
    return await service.order_history(user.id)


@router.get("/restaurants", response_model=list[RestaurantDetailResponse])
async def get_my_restaurants(
    user: CurrentUser = Depends(require("restaurant:list_own")),
    service: RestaurantService = Depends(get_restaurant_service),
):
    """Restaurants owned by the calling vendor, inactive ones included."""
    return await service.list_by_owner(user.id)
