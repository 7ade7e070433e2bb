"""
GreenPantry API — Restaurants API

Browsing is anonymous (GET is public in JWTAuthMiddleware); creating,
editing and removing restaurants needs a Vendor or Admin token.
"""
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user, get_menu_service, get_restaurant_service
from app.core.security import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.restaurant import (
    MenuCategory,
    RestaurantDetailResponse,
    RestaurantFilter,
    RestaurantRequest,
    RestaurantResponse,
)
from app.services.restaurant_service import MenuService, RestaurantService

router = APIRouter(prefix="/api/restaurants", tags=["restaurants"])


@router.get("", response_model=list[RestaurantResponse])
async def list_restaurants(
    city: str | None = None,
    cuisine_type: str | None = None,
    min_rating: float | None = Query(None, ge=0, le=5),
    search_term: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: RestaurantService = Depends(get_restaurant_service),
):
    return await service.search(RestaurantFilter(
        city=city,
        cuisine_type=cuisine_type,
        min_rating=min_rating,
        search_term=search_term,
        page=page,
        page_size=page_size,
    ))


@router.get("/{restaurant_id}", response_model=RestaurantDetailResponse)
async def get_restaurant(
    restaurant_id: str, service: RestaurantService = Depends(get_restaurant_service)
):
    return await service.get(restaurant_id)


@router.get("/{restaurant_id}/menu", response_model=list[MenuCategory])
async def get_restaurant_menu(
    restaurant_id: str,
    restaurants: RestaurantService = Depends(get_restaurant_service),
    menu: MenuService = Depends(get_menu_service),
):
    await restaurants.get(restaurant_id)
    return await menu.menu_for_restaurant(restaurant_id)


@router.post("", response_model=RestaurantDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantRequest,
    user: CurrentUser = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service),
):
    return await service.create(payload, user)


@router.put("/{restaurant_id}", response_model=RestaurantDetailResponse)
async def update_restaurant(
    restaurant_id: str,
    payload: RestaurantRequest,
    user: CurrentUser = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service),
):
    return await service.update(restaurant_id, payload, user)


@router.delete("/{restaurant_id}", response_model=MessageResponse)
async def delete_restaurant(
    restaurant_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service),
):
    await service.delete(restaurant_id, user)
    return MessageResponse(message="Restaurant deleted successfully")
