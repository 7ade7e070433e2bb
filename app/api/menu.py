"""
GreenPantry API — Menu items API
"""
from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user, get_menu_service
from app.core.security import CurrentUser
from app.schemas.common import MessageResponse
from app.schemas.restaurant import MenuCategory, MenuItemRequest, MenuItemResponse
from app.services.restaurant_service import MenuService

router = APIRouter(prefix="/api/menu", tags=["menu"])


@router.get("/restaurant/{restaurant_id}", response_model=list[MenuCategory])
async def get_menu(restaurant_id: str, service: MenuService = Depends(get_menu_service)):
    """Available items of a restaurant, grouped by category."""
    return await service.menu_for_restaurant(restaurant_id)


@router.get("/{menu_item_id}", response_model=MenuItemResponse)
async def get_menu_item(menu_item_id: str, service: MenuService = Depends(get_menu_service)):
    return await service.get_item(menu_item_id)


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    payload: MenuItemRequest,
    user: CurrentUser = Depends(get_current_user),
    service: MenuService = Depends(get_menu_service),
):
    return await service.create_item(payload, user)


@router.put("/{menu_item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    menu_item_id: str,
    payload: MenuItemRequest,
    user: CurrentUser = Depends(get_current_user),
    service: MenuService = Depends(get_menu_service),
):
    return await service.update_item(menu_item_id, payload, user)


@router.delete("/{menu_item_id}", response_model=MessageResponse)
async def delete_menu_item(
    menu_item_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: MenuService = Depends(get_menu_service),
):
    await service.delete_item(menu_item_id, user)
    return MessageResponse(message="Menu item deleted successfully")
